import sys

from yagna_named.cli import main

sys.exit(main())
