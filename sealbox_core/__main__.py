import sys
from sealbox_core.cli import main

sys.exit(main())
