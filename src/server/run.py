"""CLI entry point for launching the FastAPI app with uvicorn."""

import uvicorn

from src.planner.config import Config


def main() -> None:
    """Run the development server using the ``server`` section of app_config.yaml."""
    config = Config.from_yaml()
    uvicorn.run(
        "src.server.app:app",
        host=config.server.host,
        port=config.server.port,
        reload=config.server.reload,
        reload_dirs=["src"],
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
