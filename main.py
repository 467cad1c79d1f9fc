#!/usr/bin/env python3
"""certdock CLI entrypoint for running from a source checkout."""

from certdock.certdock import main

if __name__ == "__main__":
    main()
