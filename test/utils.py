"""
Utilities behavioral tests (sentinel, casing transforms, helpers).

Scope
- Validate the Unset sentinel: singleton, falsy, copy/pickle identity, finality.
- Validate coalesce/rename/mirror.
- Validate paramcase/identifier key transforms.
- Validate iscoroutinecallable detection.

Conventions
- Test method names follow CamelCase per project convention.
"""
import copy
import functools
import pickle
import unittest
from unittest import TestCase

from argotree.utils import *
from argotree.utils import SpecType


class UnsetTest(TestCase):
    """Semantic guarantees of the Unset sentinel."""

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalsyButNotNone(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, 0)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testCopyPreservesIdentity(self):
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testPicklePreservesIdentity(self):
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testCannotSubclass(self):
        with self.assertRaises(TypeError):
            class Derived(UnsetType):
                pass

    def testUnionWithTypes(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("x", Unset | str)
        self.assertNotIsInstance(3, str | Unset)


class HelpersTest(TestCase):
    """coalesce, rename and mirror."""

    def testCoalesceReplacesUnsetOnly(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce(0, 5), 0)
        self.assertIsNone(coalesce(None, "fallback"))

    def testRenameDirect(self):
        def function():
            pass

        rename(function, "other")
        self.assertEqual(function.__name__, "other")
        self.assertEqual(function.__qualname__, "other")

    def testRenameDecorator(self):
        @rename("other")
        def function():
            pass

        self.assertEqual(function.__name__, "other")

    def testRenameRejectsBadArguments(self):
        with self.assertRaises(TypeError):
            rename(1, "name")
        with self.assertRaises(TypeError):
            rename(print, "a", "b")

    def testMirrorFreezesContainers(self):
        class Holder:
            items = mirror("items")
            table = mirror("table")

            def __init__(self):
                self._items = [1, 2]
                self._table = {"a": 1}

        holder = Holder()
        self.assertEqual(holder.items, (1, 2))
        with self.assertRaises(TypeError):
            holder.table["b"] = 2
        with self.assertRaises(AttributeError):
            holder.items = ()


class SpecTypeTest(TestCase):
    """Introspectable spec classes built by SpecType."""

    def testDisplayableDefaultsToUnset(self):
        self.assertIs(SpecType.__displayable__, Unset)

    def testPropertiesAndRepr(self):
        class PortSpec(metaclass=SpecType):
            __introspectable__ = ("number", "label")

            def __init__(self, number, label):
                self._number = number
                self._label = label

        spec = PortSpec(80, "http")
        self.assertEqual(PortSpec.__typename__, "port-spec")
        self.assertEqual(spec.number, 80)
        self.assertEqual(repr(spec), "port-spec(number=80, label='http')")
        with self.assertRaises(AttributeError):
            spec.number = 443


class CasingTest(TestCase):
    """paramcase and identifier transforms."""

    def testParamcaseCamel(self):
        self.assertEqual(paramcase("logLevel"), "log-level")
        self.assertEqual(paramcase("dryRun"), "dry-run")

    def testParamcaseScreamingSnake(self):
        self.assertEqual(paramcase("LOG_LEVEL"), "log-level")

    def testParamcaseAcronym(self):
        self.assertEqual(paramcase("HTTPServer"), "http-server")
        self.assertEqual(paramcase("v2Api"), "v2-api")

    def testParamcaseDigitsNextToCapitals(self):
        self.assertEqual(paramcase("HTTP2Server"), "http2-server")
        self.assertEqual(paramcase("HTTP2_SERVER"), "http2-server")
        self.assertEqual(paramcase("ipv6Addr"), "ipv6-addr")
        self.assertEqual(paramcase("IPV6_ADDR"), "ipv6-addr")
        self.assertEqual(paramcase("http2"), "http2")

    def testParamcaseIsIdempotent(self):
        self.assertEqual(paramcase("log-level"), "log-level")
        self.assertEqual(paramcase(paramcase("logLevel")), "log-level")

    def testParamcaseRejectsNonString(self):
        with self.assertRaises(TypeError):
            paramcase(3)

    def testIdentifier(self):
        self.assertEqual(identifier("log-level"), "log_level")
        self.assertEqual(identifier("logLevel"), "log_level")
        self.assertEqual(identifier("verbose"), "verbose")


class CoroutineCallableTest(TestCase):
    """iscoroutinecallable detection."""

    def testCoroutineFunction(self):
        async def handler():
            pass

        self.assertTrue(iscoroutinecallable(handler))

    def testPlainFunction(self):
        def handler():
            pass

        self.assertFalse(iscoroutinecallable(handler))
        self.assertFalse(iscoroutinecallable("handler"))

    def testPartial(self):
        async def handler(a, b):
            pass

        self.assertTrue(iscoroutinecallable(functools.partial(handler, 1)))

    def testAsyncCallableInstance(self):
        class Handler:
            async def __call__(self):
                pass

        self.assertTrue(iscoroutinecallable(Handler()))


if __name__ == "__main__":
    unittest.main()
