from __future__ import annotations
import shutil
import sys
from typing import Optional

from warp_transcribe.backend.common.logging import get_logger, init_logging
from warp_transcribe.backend.common.tasks import TaskRunner, TaskSpec
from warp_transcribe.backend.common.types import HealthReport
from warp_transcribe.backend.player.registry import build_registry
from warp_transcribe.config.settings import Settings, get_settings



def quick_self_check(settings: Optional[Settings] = None) -> HealthReport:
    settings = settings or get_settings()
    components = {
        "python": "ok" if sys.version_info >= (3, 10) else "degraded",
        "logging": "ok",
        "config": "ok",
    }

    # one entry per player program the registry can hand out
    for name, protocol in build_registry(settings).protocols().items():
        components[f"player:{name}"] = "ok" if shutil.which(protocol.program) else "degraded"

    players = [v for k, v in components.items() if k.startswith("player:")]
    if players and all(v != "ok" for v in players):
        status = "fail"
    elif all(v == "ok" for v in components.values()):
        status = "ok"
    else:
        status = "degraded"

    return {"status": status, "components": components}


def main() -> int:
    settings = get_settings()

    init_logging(settings.log_level, log_file=settings.log_file)
    log = get_logger("warptx.startup")

    log.info("boot_begin", extra={"app": settings.app_name, "env": settings.env, "log_level": settings.log_level})

    with TaskRunner(max_workers=1, context="startup") as runner:
        fut = runner.submit(TaskSpec(fn=quick_self_check, args=(settings,), name="self_check"))
        health = fut.result(timeout=5)
    log.info("health_report", extra=dict(health))

    log.info("boot_ready", extra={"version": __import__("warp_transcribe").__version__})

    return 0 if health["status"] != "fail" else 1


if __name__ == "__main__":
    raise SystemExit(main())
