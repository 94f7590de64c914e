"""Sequential models used to check histories of operations."""