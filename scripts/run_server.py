from __future__ import annotations

import uvicorn

from assessment_calendar.infrastructure.config import get_settings


def server_options() -> dict[str, object]:
    server = get_settings().server
    return {"host": server.host, "port": server.port, "reload": server.reload}


def main() -> None:
    options = server_options()
    print(f"[run-server] Calendar API on http://{options['host']}:{options['port']}")
    print(f"[run-server] Health check: http://{options['host']}:{options['port']}/api/health")
    uvicorn.run("assessment_calendar.web.main:app", **options)


if __name__ == "__main__":
    main()
