import sys

from macd.main import main

sys.exit(main())
