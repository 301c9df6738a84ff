"""Package entry point for ``python -m soundshelf``.

WHY: Users run ``python -m soundshelf tag track.mp3 ...`` or
``python -m soundshelf serve`` without installing the console script.

HOW: Delegates to the CLI's main() function.
"""

from soundshelf.cli import main

if __name__ == "__main__":
    main()
