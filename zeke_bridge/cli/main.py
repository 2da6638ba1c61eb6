"""The ``zeke-bridge`` command.

Both subcommands read Z_AI_API_KEY from the environment and accept the
shared upstream options from ``_options``.
"""

import click

from zeke_bridge import __version__

from .mcp import mcp
from .serve import serve


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="zeke-bridge")
def main() -> None:
    """Bridge Z.AI web search, page reading and chat completions to local clients.

    \b
    Examples:
        zeke-bridge serve               HTTP gateway: MCP at /mcp, chat at /v1
        zeke-bridge mcp serve           MCP tools over stdio
    """


main.add_command(serve)
main.add_command(mcp)
