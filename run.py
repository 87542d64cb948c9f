import sys
import json
import logging
import argparse
from bucketmarks import create_app
from bucketmarks.client import build_coordinator
from bucketmarks.config import Config

log = logging.getLogger('werkzeug')
log.disabled = True
cli = sys.modules['flask.cli']
cli.show_server_banner = lambda *x: None


def serve(args) -> None:
    app = create_app()
    print(f"Bucketmarks sync server starting on http://{args.host}:{args.port}", flush=True)
    app.run(host=args.host, port=args.port, debug=False)


def sync_once(args) -> int:
    coordinator = build_coordinator(Config)
    try:
        login = coordinator.remote.login(args.username, args.password)
        if not login.ok:
            print(f"Login failed: {login.error}", file=sys.stderr)
            return 1
        coordinator.sweep_tombstones()
        result = coordinator.sign_in(login.token)
        if result.get("push_scheduled"):
            result = coordinator.flush_push()
        print(json.dumps({"result": result, "status": coordinator.status()}, indent=2))
        return 0 if result.get("status") != "error" else 1
    finally:
        coordinator.shutdown()
        coordinator.remote.close()


def main() -> None:
    p = argparse.ArgumentParser(prog="bucketmarks")
    p.add_argument("--log-level", default="INFO")
    sub = p.add_subparsers(dest="command")

    server = sub.add_parser("serve", help="run the document store server")
    server.add_argument("--host", default="0.0.0.0")
    server.add_argument("--port", type=int, default=8072)

    client = sub.add_parser("sync", help="sync the local replica once and exit")
    client.add_argument("--username", required=True)
    client.add_argument("--password", required=True)

    args = p.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    if args.command == "sync":
        sys.exit(sync_once(args))
    if args.command is None:
        args = server.parse_args([])
    serve(args)

if __name__ == "__main__":
    main()
