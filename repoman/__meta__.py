# -*- coding: utf-8 -*-
"""Define project metadata
"""

__title__ = "repoman"
__summary__ = "Publish versioned update repositories backed by a deduplicated file store."
__url__ = "https://github.com/MultiMC/repoman"

__version__ = "0.1.0"

__install_requires__ = ["fs>=2.4.16", "click>=8.0"]
__tests_require__ = ["pytest", "tox"]

__author__ = "MultiMC Contributors"
__email__ = "contact@multimc.org"

__license__ = "Apache License 2.0"
