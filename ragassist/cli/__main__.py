"""Allow ``python -m ragassist.cli`` execution."""

from ragassist.cli.main import main

main()
