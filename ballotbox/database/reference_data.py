# ballotbox/database/reference_data.py

# Fixed reference lists bulk-loaded on first start.

REFERENCE_CANDIDATES = [
    {
        'id': 1,
        'number': 1,
        'chairman_name': 'MUHAMAD FADLAN ARFANI',
        'chairman_class': 'XI C',
        'vice_chairman_name': None,
        'motto': 'Bersama Membangun Prestasi',
        'details': {
            'tags': ['Prestasi', 'Loyalitas'],
            'vision': 'Mewujudkan OSSIP yang inovatif, aspiratif, dan berprestasi di tingkat regional '
                      'dengan mengedepankan transparansi dan partisipasi aktif seluruh siswa.',
            'mission': [
                'Meningkatkan kualitas kegiatan ekstrakurikuler',
                'Memperkuat komunikasi antara siswa dan pihak sekolah',
                'Mengembangkan program kreatif dan inovatif',
            ],
            'image_chairman': 'https://randomuser.me/api/portraits/men/32.jpg',
            'image_vice_chairman': 'https://randomuser.me/api/portraits/men/33.jpg',
        },
    },
    {
        'id': 2,
        'number': 2,
        'chairman_name': 'PRAMUDITA AULADI',
        'chairman_class': 'XI C',
        'vice_chairman_name': None,
        'motto': 'Kreatif, Inovatif, dan Kolaboratif',
        'details': {
            'tags': ['Kreatif', 'Kolaborasi', 'Aspiratif'],
            'vision': 'Menjadikan OSSIP sebagai wadah pengembangan potensi siswa secara maksimal melalui '
                      'program kreatif, inovatif, dan kolaboratif dengan seluruh elemen sekolah.',
            'mission': [
                'Menciptakan lingkungan belajar yang nyaman',
                'Mengadakan event kreatif tahunan',
                'Membangun sistem aspirasi siswa yang efektif',
            ],
            'image_chairman': 'https://randomuser.me/api/portraits/women/44.jpg',
            'image_vice_chairman': 'https://randomuser.me/api/portraits/women/45.jpg',
        },
    },
    {
        'id': 3,
        'number': 3,
        'chairman_name': 'DHARMA ALIF SAPUTRA',
        'chairman_class': 'XI D',
        'vice_chairman_name': None,
        'motto': 'Satu untuk Semua, Semua untuk Satu',
        'details': {
            'tags': ['Solidaritas', 'Transparan', 'Fleksibel'],
            'vision': 'Membentuk OSIS yang solid, transparan, dan berorientasi pada kebutuhan siswa '
                      'dengan mengutamakan prinsip gotong royong dan kebersamaan.',
            'mission': [
                'Meningkatkan solidaritas antar siswa',
                'Menerapkan sistem kerja yang transparan',
                'Responsif terhadap kebutuhan siswa',
            ],
            'image_chairman': 'https://randomuser.me/api/portraits/men/65.jpg',
        },
    },
]

_VOTERS_BY_UNIT = {
    'diknas': [
        'Faizzuddin Prawiranegara', 'Rohemi', 'Anis Fuad', 'Helmi Agustian', 'Murni',
        'Siti Roudotul Fadillah', 'Vinka Nur Octaviani', 'Iptikarul Ilmi', 'Mutamimah',
        'Febi Rizki Anisah', 'Pipit Eka Kurniawati', 'Nurhikmatul Aliyah', 'Istiqomah Cahyani',
        'Sutisna', 'Nadiyah Aulia Rahmah', 'Aji Sukma Iqbal Najibulloh',
    ],
    'pengasuhan': [
        'Iwan Gunawan', 'Tb Sultan Mardotillah', 'Ust Atif Media', 'Windi', 'Wulan',
        'Muhammad Yahya Ayas', 'Asep', 'Afni', 'Nur Indah Fitriana',
    ],
    'tahfidz': ['Mahrus Sholeh', 'Restu', 'Jihan', 'Arruh', 'Diki amarullah', 'Novi'],
}


def _build_voters():
    voters = []
    for unit, names in _VOTERS_BY_UNIT.items():
        for name in names:
            n = len(voters) + 1
            voters.append({'id': n, 'username': f'guru{n:02d}', 'name': name, 'class': unit})
    return voters


REFERENCE_VOTERS = _build_voters()

ALL_PERMISSIONS = ['view', 'edit', 'delete', 'reset', 'export', 'audit']

REFERENCE_ADMINS = [
    {
        'id': 1,
        'username': 'admin',
        'password': 'admin123',
        'name': 'Admin Panitia',
        'role': 'super_admin',
        'permissions': list(ALL_PERMISSIONS),
        'email': 'admin@school.edu',
        'phone': '081234567890',
    },
    {
        'id': 2,
        'username': 'panitia',
        'password': 'panitia123',
        'name': 'Panitia Pemilihan',
        'role': 'admin',
        'permissions': ['view', 'reset'],
        'email': 'panitia@school.edu',
        'phone': '081234567891',
    },
]
