"""
Reference Seed Data

Fixed-id categories and vendors written before any product. Category ids
match the classifier taxonomy keys; vendor names match the configured
source files.
"""

from typing import List

from services.database.models import Category, Vendor


def seed_categories() -> List[Category]:
    return [
        Category(id='dental-anatomy', slug='dental-anatomy', name='Dental anatomy',
                 name_ar='تشريح الأسنان',
                 description='Anatomy-related study and reference materials',
                 icon='academic-cap'),
        Category(id='operative', slug='operative', name='Operative',
                 name_ar='الجراحة الترميمية',
                 description='Restorative and operative dentistry supplies',
                 icon='wrench'),
        Category(id='fixed-crown', slug='fixed-crown', name='Fixed (crown)',
                 name_ar='التركيبات الثابتة',
                 description='Fixed prosthodontics including crowns and bridges',
                 icon='shield-check'),
        Category(id='removable-prothesis', slug='removable-prothesis',
                 name='Removable (prothesis)',
                 name_ar='التركيبات المتحركة',
                 description='Removable prosthesis materials and accessories',
                 icon='puzzle-piece'),
        Category(id='endo', slug='endo', name='Endo',
                 name_ar='علاج الجذور',
                 description='Endodontic instruments and materials',
                 icon='beaker'),
        Category(id='surgery', slug='surgery', name='Surgery',
                 name_ar='الجراحة',
                 description='Surgical devices and consumables',
                 icon='scissors'),
        Category(id='pedo', slug='pedo', name='Pedo',
                 name_ar='طب أسنان الأطفال',
                 description='Pediatric dentistry supplies',
                 icon='face-smile'),
        Category(id='ortho', slug='ortho', name='Ortho',
                 name_ar='تقويم الأسنان',
                 description='Orthodontic appliances and materials',
                 icon='sparkles'),
        Category(id='perio', slug='perio', name='Perio',
                 name_ar='طب اللثة',
                 description='Periodontics instruments and consumables',
                 icon='leaf'),
        Category(id='devices', slug='devices', name='Devices',
                 name_ar='الأجهزة',
                 description='Dental devices and equipment',
                 icon='cpu-chip'),
        Category(id='instruments', slug='instruments', name='Instruments',
                 name_ar='الأدوات',
                 description='General dental instruments',
                 icon='tool'),
    ]


def seed_vendors() -> List[Vendor]:
    return [
        Vendor(id='kandil', name='Kandil Medical', slug='kandil-medical',
               name_ar='كنديل ميديكال',
               email='info@kandilmedical.com',
               phone='+20 2 1234 5678',
               address='Cairo, Egypt',
               description='Professional dental equipment and supplies from Kandil Medical'),
        Vendor(id='denta-carts', name='Denta Carts', slug='denta-carts',
               name_ar='دنتا كارتس',
               email='info@dentacarts.com',
               phone='+20 2 2345 6789',
               address='Alexandria, Egypt',
               description='Comprehensive dental supplies and instruments from Denta Carts'),
        Vendor(id='misr-sinai', name='Misr Sinai For Supplies', slug='misr-sinai-supplies',
               name_ar='مصر سيناء للمستلزمات',
               email='info@misrsinai.com',
               phone='+20 2 3456 7890',
               address='Sinai, Egypt',
               description='High-quality dental supplies and equipment from Misr Sinai'),
    ]
