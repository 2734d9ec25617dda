"""Example: drive the service layer directly, without Flask.

Controllers stay thin; the presence rules live in the services.
"""

import importlib

from presence_system.config import get_settings_module
from presence_system.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG, settings=settings)

    result = container.transition_service.toggle("cs001")
    print(result.message)
    print(container.student_service.presence_counts().to_dict())
    for entry in container.activity_service.list_recent(limit=5):
        print(entry.to_dict())


if __name__ == "__main__":
    main()
