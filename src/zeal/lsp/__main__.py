"""Entry point for ``python -m zeal.lsp``."""

from zeal.lsp.server import main

if __name__ == "__main__":
    main()
