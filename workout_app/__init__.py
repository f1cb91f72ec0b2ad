"""
Workout Tracker -- PySide6 application layer.

Package layout:
    services/   Application services (the persisted workout store)
    config      Settings and environment overrides
    paths       Data directory resolution
    main        Entry point and maintenance commands
"""
