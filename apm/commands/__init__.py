"""apm sub-commands, one module per operation flag."""
