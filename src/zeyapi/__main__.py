"""Allow ``python -m zeyapi``."""

from zeyapi.app import main

main()
