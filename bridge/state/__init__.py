"""Runtime state (built once per process) and the namespace snapshot it carries."""
