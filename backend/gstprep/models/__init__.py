from gstprep.models.gstr1 import B2BInvoice, B2CSRow, DocumentIssued, HsnRow, NilRatedSupply
from gstprep.models.gstr3b import EligibleItc, Gstr3bSummary, PaymentOfTax, Section31Row

__all__ = [
    "B2BInvoice",
    "B2CSRow",
    "HsnRow",
    "DocumentIssued",
    "NilRatedSupply",
    "Section31Row",
    "EligibleItc",
    "PaymentOfTax",
    "Gstr3bSummary",
]
