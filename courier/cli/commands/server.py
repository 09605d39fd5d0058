"""Server commands."""

import cyclopts
import uvicorn

from courier.cli.console import get_console
from courier.config import Config

app = cyclopts.App(name="server", help="Run the courier API server")


@app.command
def run(host: str | None = None, port: int | None = None, reload: bool = False) -> None:
    """Run the API server in the foreground.

    Args:
        host: Host to bind to. Defaults to server.host from config.
        port: Port to listen on. Defaults to server.port from config.
        reload: Restart on code changes (development only).
    """
    config = Config()
    host = host or config.server.host
    port = port or config.server.port

    get_console().info(f"Starting {config.server.name} on http://{host}:{port}")
    uvicorn.run(
        "courier.application.api.rest.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_config=None,  # Logging is configured by the app
    )
