"""Task-assignment portal: workflow engine, undo log, notification feed and calendar."""
