import sys

from propsxls.cli import main

sys.exit(main())
