#!/usr/bin/env python
import sys

from joyent.jenkins.trigger import main


if __name__ == "__main__":
    sys.exit(main())
