"""Back-end services for the kenpayroll application."""
