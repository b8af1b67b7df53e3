"""Infrastructure layer — socket transport, command execution, queue storage."""
