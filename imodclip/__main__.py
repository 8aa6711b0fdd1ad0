import sys

from imodclip.cli import main

sys.exit(main())
