import sys

from wallet_cli.main import main

sys.exit(main())
