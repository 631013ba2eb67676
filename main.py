import logging

from rich.pretty import pprint

from argotree import *

__prog__ = "demo"


@plugin({"verbose": Option("boolean", default=False)}, recursive=True)
async def verbose(ctx, args, next, node):
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    await next()


@command(options={"target": Option("string", required=True), "dry-run": Option(bool)})
async def deploy(ctx, args):
    """Deploy the current build to a target."""
    pprint({"target": args.target, "dry_run": args.dry_run, "extra": args.passthrough})


@command(options={"port": Option("number", default=8000)}, default=True)
async def serve(ctx, args):
    """Serve the current build locally."""
    pprint({"port": args.port})


root = app(group("demo", deploy, serve, plugins=[verbose]))


if __name__ == '__main__':
    pprint(root)
    invoke(root, {}, shell=True)
