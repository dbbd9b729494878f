"""Process-wide logging setup: one stdout handler for the gateway and uvicorn."""
import logging
import sys


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure stdout logging for the gateway process."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    return logging.getLogger("storage_gateway")
