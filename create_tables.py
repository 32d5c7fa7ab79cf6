from pushgate.db.base import Base
from pushgate.db.session import engine
from pushgate.db import models  # noqa: F401  # Registers every table on Base.metadata

if __name__ == "__main__":
    print("Creating gateway tables...")
    Base.metadata.create_all(bind=engine)
    print("Tables created:", ", ".join(sorted(Base.metadata.tables)))
