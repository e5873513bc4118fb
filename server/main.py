# =============================================================================
# Screenlog - Server Entry Point
# =============================================================================
# CLI entry point for starting the FastAPI server: SQLite record store,
# sentence-embedding model, and the generation client.
# =============================================================================

import argparse
import logging

import uvicorn

from config import get_config


def main():
    """Parse CLI arguments, apply overrides, and start the server."""
    parser = argparse.ArgumentParser(
        description="Screenlog — Server (record store + context selection)",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", type=str, default=None, help="Server bind address")
    parser.add_argument("--port", type=int, default=None, help="Server bind port")
    parser.add_argument("--db", type=str, default=None, help="Path to the SQLite database")
    parser.add_argument("--embedding-model", type=str, default=None, help="HuggingFace embedding model id")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    config = get_config()

    if args.host is not None:
        config.server_host = args.host
    if args.port is not None:
        config.server_port = args.port
    if args.db is not None:
        config.db_path = args.db
    if args.embedding_model is not None:
        config.embedding_model_id = args.embedding_model

    config.server_url = f"http://{config.server_host}:{config.server_port}"

    print("\n" + "=" * 60)
    print("  Screenlog — Server")
    print("=" * 60)
    print(f"  Embeddings : {config.embedding_model_id}")
    print(f"  Device     : {config.device}")
    print(f"  Database   : {config.db_path}")
    print(f"  Generation : {config.generation_model}")
    print(f"  Window     : {config.recent_window_seconds}s "
          f"(min {config.min_recent}, fallback {config.max_recent_fallback}, max {config.max_total})")
    print(f"  Listening  : {config.server_host}:{config.server_port}")
    print("=" * 60 + "\n")

    uvicorn.run(
        "server.app:app",
        host=config.server_host,
        port=config.server_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
