import os
import sys
from typing import Dict, List, Tuple

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import uvicorn

from relay.api.main import create_app
from relay.config import ConfigurationError, load_settings
from relay.logger import configure_logging, log


def _parse_cli_args(args: List[str]) -> Tuple[Dict[str, str], List[str]]:
    """Parse ``--key value`` pairs and return any unrecognised tokens."""

    cli_params: Dict[str, str] = {}
    residual: List[str] = []
    i = 0
    while i < len(args):
        token = args[i]
        if token in {"--host", "--port"} and i + 1 < len(args):
            cli_params[token[2:]] = args[i + 1]
            i += 2
        else:
            residual.append(token)
            i += 1
    return cli_params, residual


def _print_usage() -> None:
    print("Usage:\n  python run.py [--host <address>] [--port <port>]")


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    cli_params, residual = _parse_cli_args(args)
    if residual:
        print(f"[server error] Unrecognised arguments: {' '.join(residual)}", file=sys.stderr)
        _print_usage()
        return 1

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        print(f"[server error] {exc}", file=sys.stderr)
        return 1

    configure_logging(settings.log_level)
    host = cli_params.get("host") or settings.host
    try:
        port = int(cli_params.get("port") or settings.port)
    except ValueError:
        print("[server error] --port must be an integer", file=sys.stderr)
        return 1

    app = create_app(settings)
    log(f"Backend running on port {port}")
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
