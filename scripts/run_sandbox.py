"""Run the in-memory sandbox backend for local designer sessions."""
import uvicorn

from workflow_designer.config import settings
from workflow_designer.main import configure_logging


def main() -> None:
    configure_logging()
    uvicorn.run(
        "workflow_designer.main:app",
        host=settings.sandbox_host,
        port=settings.sandbox_port,
        log_level=settings.log_level.lower(),
        reload=settings.app_debug,
    )


if __name__ == "__main__":
    main()
