#!/usr/bin/env python3
"""n8n stack deployment tool: CLI entrypoint."""

from n8ndock.n8ndock import main

if __name__ == "__main__":
    main()
