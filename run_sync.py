"""Run one catalog sync from the command line.

Exit codes: 0 complete, 1 the run could not proceed, 2 another run holds the lock.
"""
from shopsync.config import Settings
from shopsync.db import init_db, make_engine
from shopsync.errors import SyncAborted, SyncAlreadyRunning
from shopsync.sync import build_orchestrator


def main() -> int:
    settings = Settings()
    engine = make_engine(settings)
    print("Running catalog sync...")
    try:
        init_db(engine)
        report = build_orchestrator(settings, engine).run_sync()
    except SyncAlreadyRunning as e:
        print(f"Skipped: {e}")
        return 2
    except SyncAborted as e:
        print(f"Sync failed: {e}")
        return 1
    finally:
        engine.dispose()
    print(f"Sync complete: {report.attempted} attempted, "
          f"{report.succeeded} succeeded, {report.failed} failed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
