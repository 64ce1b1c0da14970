import argparse
import logging
import sys

from core.config import LOG_LEVEL, VALID_TRANSPORTS, WORKSPACE_MCP_PORT, get_transport_mode

# Suppress googleapiclient discovery cache warning
logging.getLogger('googleapiclient.discovery_cache').setLevel(logging.ERROR)

logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(
        description="MCP server for reading and editing Google Docs as marked text"
    )
    parser.add_argument('--transport', choices=VALID_TRANSPORTS, default=get_transport_mode(),
                        help='Transport mode (default: stdio, or WORKSPACE_MCP_TRANSPORT)')
    parser.add_argument('--port', type=int, default=WORKSPACE_MCP_PORT,
                        help='Port for the streamable-http transport')
    args = parser.parse_args()

    from core.server import get_version, server, set_transport_mode
    # Registers the tools on the server
    import gdocs.docs_tools  # noqa: F401

    set_transport_mode(args.transport)
    logger.info(f"Starting gdocs-marked-text {get_version()} ({args.transport})")

    try:
        if args.transport == 'streamable-http':
            server.run(transport='streamable-http', host='0.0.0.0', port=args.port)
        else:
            server.run()
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
        sys.exit(0)


if __name__ == '__main__':
    main()
