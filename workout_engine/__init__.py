"""
Workout Tracker engine -- Qt-free state layer.

Modules:
    state         TrackerState and per-collection merge rules
    storage       One-file-per-slot device storage and load
    repair        Log timestamp repair
    parts         Built-in and custom body-part registry
    backup_codec  Backup export/restore
    views         Read-only derived views
"""
