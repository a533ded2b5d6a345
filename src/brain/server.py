"""
Brain MCP server entry point.

Startup sequence:
1. Configure logging from BRAIN_LOG_LEVEL
2. Resolve the workspace (BRAIN_ROOT, else the current brain in the config)
3. Start REST API server in background thread (if API_ENABLED)
4. Register all MCP tools
5. Run MCP server (stdio transport)
"""

import logging
import os
import sys
import threading
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from brain.api.tools import register_tools
from brain.config import load_config
from brain.errors import BrainError
from brain.workspace import Workspace

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEFAULT_API_PORT = 9410

log = logging.getLogger(__name__)


def setup_logging(default_level: str) -> None:
    level = os.environ.get("BRAIN_LOG_LEVEL", default_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def resolve_workspace() -> Workspace:
    """BRAIN_ROOT wins; otherwise the config's current brain and its focus."""
    root_env = os.environ.get("BRAIN_ROOT", "")
    if root_env:
        return Workspace(root=Path(root_env).expanduser())
    return Workspace.from_config(load_config())


def _start_api_server(workspace: Workspace, port: int) -> None:
    """Run the FastAPI/uvicorn server in a daemon thread."""
    import uvicorn

    from brain.api.app import create_app

    app = create_app(workspace)
    log.info("Starting REST API on port %d", port)
    uvicorn.run(app, host="127.0.0.1", port=port, log_level="warning")


def main() -> None:
    setup_logging("INFO")

    try:
        workspace = resolve_workspace()
    except BrainError as e:
        log.error("Could not resolve workspace: %s", e)
        sys.exit(1)

    if not workspace.active_dir.is_dir():
        log.error("Not a brain directory (missing 01_active/): %s", workspace.root)
        sys.exit(1)

    log.info("Brain root: %s", workspace.root)

    api_enabled = os.environ.get("API_ENABLED", "true").lower() in ("true", "1", "yes")
    if api_enabled:
        api_port = int(os.environ.get("API_PORT", str(DEFAULT_API_PORT)))
        api_thread = threading.Thread(
            target=_start_api_server, args=(workspace, api_port), daemon=True
        )
        api_thread.start()

    mcp = FastMCP("local-brain")
    register_tools(mcp, workspace)

    log.info("Starting local-brain server")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
