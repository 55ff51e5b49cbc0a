# python -m nivasa.fix_complaints
from nivasa.db import Base, engine, SessionLocal
from nivasa.logging import setup_logging
from nivasa.config import settings
from nivasa.services.tickets import repair_orphaned_complaints


def main() -> None:
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        updated = repair_orphaned_complaints(db)
        print(f"Updated {updated} complaints with user info.")
    finally:
        db.close()


if __name__ == "__main__":
    main()
