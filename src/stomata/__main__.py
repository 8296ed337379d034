import sys

from stomata.cli import main

sys.exit(main())
