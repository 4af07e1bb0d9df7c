# -*- coding: utf-8 -*-
from typing import Collection

# Events are published through mysqltracing.trace, so there is no third
# party driver package to check for.
_instruments: Collection[str] = ()
