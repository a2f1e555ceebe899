"""
Dental Category Taxonomy

Keyword vocabulary used by the CategoryClassifier. Declaration order matters:
when two categories score the same, the one declared first wins.
"""

from typing import Dict, Tuple

# Category every unmatched product falls back to
DEFAULT_CATEGORY_ID = 'devices'

DENTAL_TAXONOMY: Dict[str, Tuple[str, ...]] = {
    # Endodontics
    'endo': (
        'apex', 'locator', 'endodontic', 'root canal', 'file', 'reamer',
        'gutta', 'percha', 'sealer', 'obturation', 'pulp', 'vitality',
    ),

    # Oral surgery
    'surgery': (
        'surgical', 'scalpel', 'blade', 'suture', 'implant', 'bone', 'graft',
        'extraction', 'forceps', 'elevator', 'periotome', 'surgical kit',
    ),

    # Operative / restorative
    'operative': (
        'cavity', 'filling', 'composite', 'amalgam', 'restoration', 'bonding',
        'etching', 'adhesive', 'cement', 'liner', 'base', 'excavator',
    ),

    # Fixed prosthodontics
    'fixed-crown': (
        'crown', 'bridge', 'prosthesis', 'porcelain', 'ceramic', 'zirconia',
        'pfm', 'alloy', 'casting', 'impression', 'die', 'wax',
    ),

    # Removable prosthodontics
    'removable-prothesis': (
        'denture', 'partial', 'acrylic', 'resin', 'clasp', 'framework',
        'try-in', 'processing', 'relining',
    ),

    # Orthodontics
    'ortho': (
        'orthodontic', 'bracket', 'wire', 'arch', 'band', 'ligature',
        'elastic', 'retainer', 'appliance', 'braces', 'aligner',
    ),

    # Periodontics
    'perio': (
        'periodontal', 'scaling', 'curette', 'scaler', 'probe', 'gingival',
        'periodontics', 'hygiene', 'cleaning',
    ),

    # Pediatric dentistry
    'pedo': (
        'pediatric', 'child', 'kids', 'baby', 'primary', 'deciduous',
        'space maintainer', 'pedo',
    ),

    # General instruments
    'instruments': (
        'instrument', 'handpiece', 'burs', 'drill', 'probe', 'mirror',
        'explorer', 'tweezers', 'scissors', 'pliers',
    ),

    # Devices and equipment
    'devices': (
        'device', 'equipment', 'machine', 'unit', 'system', 'autoclave',
        'sterilizer', 'x-ray', 'camera', 'scanner', 'laser',
    ),

    # Study and reference material
    'dental-anatomy': (
        'anatomy', 'model', 'skull', 'jaw', 'tooth', 'teeth', 'dental chart',
        'poster', 'educational',
    ),
}
