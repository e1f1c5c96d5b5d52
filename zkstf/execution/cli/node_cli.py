import argparse
import sys
import logging
import asyncio
from uvicorn import Config, Server
from ...protocol.config.params import PROFILES, get_profile
from ...protocol.types.common import ProtocolError
from ..core.executor import BatchExecutor
from ..core.ledger import load_snapshot_file
from ..rpc import api  # executor is injected as a module global

logger = logging.getLogger(__name__)

async def serve_async(args):
    config = get_profile(args.profile)

    print("Starting zkstf evaluator host...")
    print(f"Profile: {config.profile_id} (policy={config.failure_policy.value}, scheme={config.commitment_scheme.value})")
    print(f"Listening on http://{args.host}:{args.port}")

    seed = load_snapshot_file(args.state) if args.state else None
    if seed is None:
        logger.warning("No --state given. Seeding executor with the placeholder genesis ledger.")

    ex = BatchExecutor(snapshot=seed, config=config)
    logger.info(f"Seed ledger: {ex.seed_size} accounts, root 0x{ex.seed_root.hex()}")

    # Inject into RPC module (global vars)
    api.executor = ex

    server = Server(Config(app=api.app, host=args.host, port=args.port, log_level="info"))
    await server.serve()

def cmd_run(args):
    try:
        asyncio.run(serve_async(args))
    except (ProtocolError, ValueError, OSError) as e:
        logger.error(f"Failed to start host: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nStopped.")

def main(argv=None):
    parser = argparse.ArgumentParser(description="zkstf evaluator host")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Serve the evaluator over HTTP")
    run_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    run_parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    run_parser.add_argument("--state", default=None, help="JSON snapshot to seed the executor with")
    run_parser.add_argument("--profile", default=None, choices=sorted(PROFILES), help="Executor profile (default: $ZKSTF_PROFILE or 'default')")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(name)s] %(levelname)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.command == "run":
        cmd_run(args)

if __name__ == "__main__":
    main()
