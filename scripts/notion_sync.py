"""
CLI: sync hoja de calculo <-> Notion.

Uso recomendado:
  - Ejecutar como job (cron/systemd timer) o a mano.
  - Un push procesa un lote por invocacion; con --wait el proceso queda
    vivo ejecutando las continuaciones hasta terminar la corrida.

Variables de entorno requeridas:
  - NOTION_API_KEY
  - NOTION_DATABASE_ID
  - SHEET_PATH (libro .xlsx)

Ejecucion:
  python scripts/notion_sync.py push
  python scripts/notion_sync.py push --resume
  python scripts/notion_sync.py push --wait
  python scripts/notion_sync.py pull
  python scripts/notion_sync.py reconcile-schema
  python scripts/notion_sync.py check-mapping
  python scripts/notion_sync.py status
  python scripts/notion_sync.py stop
"""

from __future__ import annotations

import argparse
import sys
import threading
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from loguru import logger

# Permite ejecutar este script desde cualquier cwd sin instalar el paquete.
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

# Cargar variables desde .env antes de construir Settings.
load_dotenv(_PROJECT_ROOT / ".env", override=False)

from stocksync.application.interfaces.scheduler import PUSH_RESUME_OPERATION
from stocksync.application.use_cases.sync_use_cases import SyncUseCases, build_from_settings, push_summary
from stocksync.core.config import Settings
from stocksync.domain.entities import PushPhase
from stocksync.infrastructure.external.notion.notion_client import NotionApiError
from stocksync.infrastructure.scheduling import ApschedulerContinuationScheduler
from stocksync.shared.exceptions.base import AppException


def _run_push(use_cases: SyncUseCases, *, resume: bool, wait: bool, done: threading.Event) -> int:
    progress = use_cases.run_push(resume=resume)
    logger.info(push_summary(progress))
    if progress.phase is not PushPhase.SUSPENDED or not wait:
        return 0

    logger.info("Esperando continuaciones (Ctrl+C para salir; la corrida queda persistida)...")
    try:
        done.wait()
    except KeyboardInterrupt:
        logger.warning("Interrumpido; usa 'push --resume' para continuar")
        return 130
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Sync hoja de calculo <-> Notion")
    sub = parser.add_subparsers(dest="command", required=True)

    push = sub.add_parser("push", help="Push Hoja -> Notion (un lote por invocacion)")
    push.add_argument("--resume", action="store_true", help="Continuar la corrida persistida.")
    push.add_argument(
        "--wait",
        action="store_true",
        help="Ejecutar las continuaciones en este proceso hasta terminar la corrida.",
    )
    sub.add_parser("pull", help="Pull completo Notion -> Hoja (destructivo)")
    sub.add_parser("reconcile-schema", help="Agregar en Notion las propiedades faltantes")
    sub.add_parser("check-mapping", help="Validar el mapeo contra el esquema de Notion")
    sub.add_parser("status", help="Estado de la corrida de push persistida")
    sub.add_parser("stop", help="Detener la corrida de push activa")
    args = parser.parse_args()

    settings = Settings()
    scheduler = BackgroundScheduler(timezone="UTC")
    continuation = ApschedulerContinuationScheduler(scheduler, {})
    done = threading.Event()

    try:
        use_cases = build_from_settings(settings, continuation)
    except AppException as e:
        logger.error(e.message)
        return 2

    def resume_job() -> None:
        try:
            progress = use_cases.continue_push()
        except Exception as e:
            logger.error(f"Error en continuacion de push: {e}")
            done.set()
            return
        logger.info(push_summary(progress))
        if progress.phase is not PushPhase.SUSPENDED:
            done.set()

    continuation.register(PUSH_RESUME_OPERATION, resume_job)
    scheduler.start()

    try:
        if args.command == "push":
            return _run_push(use_cases, resume=args.resume, wait=args.wait, done=done)
        if args.command == "pull":
            logger.info(use_cases.pull())
        elif args.command == "reconcile-schema":
            logger.info(use_cases.reconcile_schema())
        elif args.command == "check-mapping":
            check = use_cases.check_mapping()
            logger.info(f"Propiedades encontradas: {len(check.found)}; faltantes: {', '.join(check.missing) or '-'}")
            if not check.title_ok:
                logger.error("La propiedad title mapeada no existe en Notion")
            return 0 if check.ok else 1
        elif args.command == "status":
            logger.info(use_cases.push_status())
        elif args.command == "stop":
            logger.info(use_cases.stop_push())
        return 0
    except AppException as e:
        logger.error(f"{e.error_code}: {e.message}")
        return 1
    except NotionApiError as e:
        logger.error(str(e))
        return 1
    finally:
        # Sin --wait, la continuacion pendiente se descarta; 'push --resume' la retoma.
        scheduler.shutdown(wait=False)


if __name__ == "__main__":
    raise SystemExit(main())
