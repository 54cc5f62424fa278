#!/usr/bin/env python3

# coding=utf-8

import sys

from .funcmodule import printe
from .runner import Runner
from .backupexception import BackupException

def main():
    try:
        Runner.main()
        print("Done")
        sys.exit(0)
    except BackupException as e:
        printe("Error: {}".format(e.message))
        sys.exit(-1)

if __name__ == '__main__':
    main()
