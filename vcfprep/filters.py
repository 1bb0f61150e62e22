# File: vcfprep/filters.py
# Location: vcfprep/vcfprep/filters.py

"""
Filtering module.

Defines the closed set of record filters applied before normalization and
the rule that picks one of them from the input header:

1. the header declares the INFO tag ``FEX``      -> PASS or FEX=PASS
2. the calls come from the ``longcallD`` caller  -> PASS and not an SV
3. anything else                                  -> PASS

The first matching check wins, so ``FEX`` takes priority over ``longcallD``.
"""

import logging
from enum import Enum

from .vcf_header_parser import VcfHeader

logger = logging.getLogger("vcfprep")

FEX_TAG = "FEX"
LONGCALLD_CALLER = "longcallD"


class FilterRule(Enum):
    """A bcftools ``-i`` expression selecting the records to keep."""

    FEX_OR_PASS = 'FILTER=="PASS" || INFO/FEX=="PASS"'
    # SVTYPE absent from INFO means the record is not a structural variant
    PASS_NOT_SV = 'FILTER=="PASS" && INFO/SVTYPE="."'
    PASS_ONLY = 'FILTER=="PASS"'

    @property
    def expression(self) -> str:
        return self.value


def select_filter_rule(header: VcfHeader) -> FilterRule:
    """
    Choose the filter rule for a VCF from its header.

    Parameters
    ----------
    header : VcfHeader
        Parsed header of the VCF about to be filtered.

    Returns
    -------
    FilterRule
        Exactly one rule; ``PASS_ONLY`` when no special marker is present.
    """
    if header.declares(FEX_TAG, "INFO"):
        rule = FilterRule.FEX_OR_PASS
    elif header.mentions_caller(LONGCALLD_CALLER):
        rule = FilterRule.PASS_NOT_SV
    else:
        rule = FilterRule.PASS_ONLY

    logger.debug("Selected filter rule %s: %s", rule.name, rule.expression)
    return rule
