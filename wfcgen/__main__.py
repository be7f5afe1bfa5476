import sys

from wfcgen.cli import main

sys.exit(main())
