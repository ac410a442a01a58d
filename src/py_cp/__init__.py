"""py-cp — a file-copy program running on a small simulated kernel."""
