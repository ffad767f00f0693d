import sys

from pngmosaic.cli import main

sys.exit(main())
