"""
Airport code to display name lookup.

Static table of the destinations served from Bergen, shown on the board
in upper case. Unknown codes pass through unchanged.

Usage:
    from flightboard.ingestion.airports import airport_name

    airport_name('OSL')  # 'OSLO'
    airport_name('XYZ')  # 'XYZ'
"""

from typing import Dict, Optional


AIRPORT_NAMES: Dict[str, str] = {
    # Domestic
    'OSL': 'OSLO',
    'SVG': 'STAVANGER',
    'TRD': 'TRONDHEIM',
    'TOS': 'TROMSØ',
    'BOO': 'BODØ',
    'AES': 'ÅLESUND',
    'KRS': 'KRISTIANSAND',
    'HAU': 'HAUGESUND',
    'MOL': 'MOLDE',
    'KSU': 'KRISTIANSUND',
    'EVE': 'EVENES',
    'ALF': 'ALTA',
    'FRO': 'FLORØ',
    'HOV': 'ØRSTA/VOLDA',
    'SDN': 'SANDANE',
    'SOG': 'SOGNDAL',
    'FDE': 'FØRDE',
    'BGO': 'BERGEN',
    'LKN': 'LEKNES',
    'SSJ': 'SANDNESSJØEN',
    'KKN': 'KIRKENES',
    'TRF': 'SANDEFJORD',
    'RRS': 'RØROS',
    'RYG': 'RYGGE',

    # International
    'CPH': 'KØBENHAVN',
    'ABZ': 'ABERDEEN',
    'LHR': 'LONDON',
    'LGW': 'LONDON',
    'STN': 'LONDON',
    'LTN': 'LONDON',
    'BRU': 'BRUSSEL',
    'AMS': 'AMSTERDAM',
    'FRA': 'FRANKFURT',
    'GDN': 'GDANSK',
    'WAW': 'WARSZAWA',
    'ARN': 'STOCKHOLM',
    'KEF': 'REYKJAVIK',
    'GOT': 'GØTEBORG',
    'HEL': 'HELSINKI',
    'EDI': 'EDINBURGH',
    'BLL': 'BILLUND',
    'HAM': 'HAMBURG',
    'MUC': 'MÜNCHEN',
    'ALC': 'ALICANTE',
    'AGP': 'MALAGA',
    'PMI': 'PALMA',
    'LPA': 'GRAN CANARIA',
}


def airport_name(code: Optional[str]) -> str:
    """Get display name for an airport code, or the code itself if unknown."""
    if not code:
        return ''
    return AIRPORT_NAMES.get(code.strip().upper(), code)
