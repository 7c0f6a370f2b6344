from .cli import bulk_import_group

# Picked up by bench as the app's command list.
commands = [bulk_import_group]

__all__ = ["bulk_import_group", "commands"]
