"""!
@brief Allow ``python -m odt_generator``.
"""
import sys

from .main import main

sys.exit(main())
