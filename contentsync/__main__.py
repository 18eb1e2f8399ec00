import sys

from contentsync.main import main

sys.exit(main())
