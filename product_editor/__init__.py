"""
Product configuration engine for the merchant product editor.

Pure rule components (classification, pricing, variants, bundles, images,
dirty-state, validation) plus the editing session that sequences them against
the external product API.
"""

__version__ = "0.1.0"
