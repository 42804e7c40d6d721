"""
zkrun CLI entrypoint.

This module provides the console_script entrypoint for the zkrun package.
"""


def main():
    """zkrun CLI entrypoint."""
    from zkrun.commands import zkrun_app

    zkrun_app()


if __name__ == "__main__":
    main()
