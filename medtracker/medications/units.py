"""
Dose unit conversion.

Every quantity is stored in milligrams. Discrete units (pill, mL, spray,
drop, puff, application) are all treated as pill-equivalents scaled by the
medication's single ``mg_per_pill`` rate.
"""
from .models import DosageUnit


def to_mg(amount: float, unit: DosageUnit, mg_per_pill: float) -> float:
    """
    Convert an amount in ``unit`` to milligrams.
    
    Args:
        amount: Quantity in the given unit
        unit: Unit the amount is expressed in
        mg_per_pill: Milligrams per pill-equivalent unit
        
    Returns:
        float: Amount in milligrams (0 for any discrete unit when mg_per_pill is 0)
    """
    if unit == DosageUnit.MG:
        return amount
    return amount * mg_per_pill


def from_mg(mg: float, mg_per_pill: float) -> float:
    """Convert milligrams back to pill-equivalents, 0 when the rate is not positive"""
    if mg_per_pill <= 0:
        return 0.0
    return mg / mg_per_pill
