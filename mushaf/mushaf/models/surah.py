"""
Surah metadata model.
"""

from enum import Enum

from pydantic import BaseModel, Field

# Surah names in Arabic
SURAH_NAMES: dict[int, str] = {
    1: "الفاتحة", 2: "البقرة", 3: "آل عمران", 4: "النساء", 5: "المائدة",
    6: "الأنعام", 7: "الأعراف", 8: "الأنفال", 9: "التوبة", 10: "يونس",
    11: "هود", 12: "يوسف", 13: "الرعد", 14: "إبراهيم", 15: "الحجر",
    16: "النحل", 17: "الإسراء", 18: "الكهف", 19: "مريم", 20: "طه",
    21: "الأنبياء", 22: "الحج", 23: "المؤمنون", 24: "النور", 25: "الفرقان",
    26: "الشعراء", 27: "النمل", 28: "القصص", 29: "العنكبوت", 30: "الروم",
    31: "لقمان", 32: "السجدة", 33: "الأحزاب", 34: "سبأ", 35: "فاطر",
    36: "يس", 37: "الصافات", 38: "ص", 39: "الزمر", 40: "غافر",
    41: "فصلت", 42: "الشورى", 43: "الزخرف", 44: "الدخان", 45: "الجاثية",
    46: "الأحقاف", 47: "محمد", 48: "الفتح", 49: "الحجرات", 50: "ق",
    51: "الذاريات", 52: "الطور", 53: "النجم", 54: "القمر", 55: "الرحمن",
    56: "الواقعة", 57: "الحديد", 58: "المجادلة", 59: "الحشر", 60: "الممتحنة",
    61: "الصف", 62: "الجمعة", 63: "المنافقون", 64: "التغابن", 65: "الطلاق",
    66: "التحريم", 67: "الملك", 68: "القلم", 69: "الحاقة", 70: "المعارج",
    71: "نوح", 72: "الجن", 73: "المزمل", 74: "المدثر", 75: "القيامة",
    76: "الإنسان", 77: "المرسلات", 78: "النبأ", 79: "النازعات", 80: "عبس",
    81: "التكوير", 82: "الانفطار", 83: "المطففين", 84: "الانشقاق", 85: "البروج",
    86: "الطارق", 87: "الأعلى", 88: "الغاشية", 89: "الفجر", 90: "البلد",
    91: "الشمس", 92: "الليل", 93: "الضحى", 94: "الشرح", 95: "التين",
    96: "العلق", 97: "القدر", 98: "البينة", 99: "الزلزلة", 100: "العاديات",
    101: "القارعة", 102: "التكاثر", 103: "العصر", 104: "الهمزة", 105: "الفيل",
    106: "قريش", 107: "الماعون", 108: "الكوثر", 109: "الكافرون", 110: "النصر",
    111: "المسد", 112: "الإخلاص", 113: "الفلق", 114: "الناس",
}

# English transliterations
SURAH_NAMES_ENGLISH: dict[int, str] = {
    1: "Al-Faatiha", 2: "Al-Baqara", 3: "Aal-i-Imraan", 4: "An-Nisaa", 5: "Al-Maaida",
    6: "Al-An'aam", 7: "Al-A'raaf", 8: "Al-Anfaal", 9: "At-Tawba", 10: "Yunus",
    11: "Hud", 12: "Yusuf", 13: "Ar-Ra'd", 14: "Ibrahim", 15: "Al-Hijr",
    16: "An-Nahl", 17: "Al-Israa", 18: "Al-Kahf", 19: "Maryam", 20: "Taa-Haa",
    21: "Al-Anbiyaa", 22: "Al-Hajj", 23: "Al-Muminoon", 24: "An-Noor", 25: "Al-Furqaan",
    26: "Ash-Shu'araa", 27: "An-Naml", 28: "Al-Qasas", 29: "Al-Ankaboot", 30: "Ar-Room",
    31: "Luqman", 32: "As-Sajda", 33: "Al-Ahzaab", 34: "Saba", 35: "Faatir",
    36: "Yaseen", 37: "As-Saaffaat", 38: "Saad", 39: "Az-Zumar", 40: "Ghafir",
    41: "Fussilat", 42: "Ash-Shura", 43: "Az-Zukhruf", 44: "Ad-Dukhaan", 45: "Al-Jaathiya",
    46: "Al-Ahqaf", 47: "Muhammad", 48: "Al-Fath", 49: "Al-Hujuraat", 50: "Qaaf",
    51: "Adh-Dhaariyat", 52: "At-Tur", 53: "An-Najm", 54: "Al-Qamar", 55: "Ar-Rahmaan",
    56: "Al-Waaqia", 57: "Al-Hadid", 58: "Al-Mujaadila", 59: "Al-Hashr", 60: "Al-Mumtahana",
    61: "As-Saff", 62: "Al-Jumu'a", 63: "Al-Munaafiqoon", 64: "At-Taghaabun", 65: "At-Talaaq",
    66: "At-Tahrim", 67: "Al-Mulk", 68: "Al-Qalam", 69: "Al-Haaqqa", 70: "Al-Ma'aarij",
    71: "Nooh", 72: "Al-Jinn", 73: "Al-Muzzammil", 74: "Al-Muddaththir", 75: "Al-Qiyaama",
    76: "Al-Insaan", 77: "Al-Mursalaat", 78: "An-Naba", 79: "An-Naazi'aat", 80: "Abasa",
    81: "At-Takwir", 82: "Al-Infitaar", 83: "Al-Mutaffifin", 84: "Al-Inshiqaaq", 85: "Al-Burooj",
    86: "At-Taariq", 87: "Al-A'laa", 88: "Al-Ghaashiya", 89: "Al-Fajr", 90: "Al-Balad",
    91: "Ash-Shams", 92: "Al-Lail", 93: "Ad-Dhuhaa", 94: "Ash-Sharh", 95: "At-Tin",
    96: "Al-Alaq", 97: "Al-Qadr", 98: "Al-Bayyina", 99: "Az-Zalzala", 100: "Al-Aadiyaat",
    101: "Al-Qaari'a", 102: "At-Takaathur", 103: "Al-Asr", 104: "Al-Humaza", 105: "Al-Fil",
    106: "Quraish", 107: "Al-Maa'un", 108: "Al-Kawthar", 109: "Al-Kaafiroon", 110: "An-Nasr",
    111: "Al-Masad", 112: "Al-Ikhlaas", 113: "Al-Falaq", 114: "An-Naas",
}

# English meanings of the surah names
SURAH_NAMES_TRANSLATION: dict[int, str] = {
    1: "The Opening", 2: "The Cow", 3: "The Family of Imraan", 4: "The Women",
    5: "The Table", 6: "The Cattle", 7: "The Heights", 8: "The Spoils of War",
    9: "The Repentance", 10: "Jonas", 11: "Hud", 12: "Joseph", 13: "The Thunder",
    14: "Abraham", 15: "The Rock", 16: "The Bee", 17: "The Night Journey",
    18: "The Cave", 19: "Mary", 20: "Taa-Haa", 21: "The Prophets",
    22: "The Pilgrimage", 23: "The Believers", 24: "The Light", 25: "The Criterion",
    26: "The Poets", 27: "The Ant", 28: "The Stories", 29: "The Spider",
    30: "The Romans", 31: "Luqman", 32: "The Prostration", 33: "The Clans",
    34: "Sheba", 35: "The Originator", 36: "Yaseen", 37: "Those drawn up in Ranks",
    38: "The letter Saad", 39: "The Groups", 40: "The Forgiver", 41: "Explained in detail",
    42: "Consultation", 43: "Ornaments of gold", 44: "The Smoke", 45: "Crouching",
    46: "The Dunes", 47: "Muhammad", 48: "The Victory", 49: "The Inner Apartments",
    50: "The letter Qaaf", 51: "The Winnowing Winds", 52: "The Mount", 53: "The Star",
    54: "The Moon", 55: "The Beneficent", 56: "The Inevitable", 57: "The Iron",
    58: "The Pleading Woman", 59: "The Exile", 60: "She that is to be examined",
    61: "The Ranks", 62: "Friday", 63: "The Hypocrites", 64: "Mutual Disillusion",
    65: "Divorce", 66: "The Prohibition", 67: "The Sovereignty", 68: "The Pen",
    69: "The Reality", 70: "The Ascending Stairways", 71: "Noah", 72: "The Jinn",
    73: "The Enshrouded One", 74: "The Cloaked One", 75: "The Resurrection",
    76: "Man", 77: "The Emissaries", 78: "The Announcement", 79: "Those who drag forth",
    80: "He frowned", 81: "The Overthrowing", 82: "The Cleaving", 83: "Defrauding",
    84: "The Splitting Open", 85: "The Constellations", 86: "The Morning Star",
    87: "The Most High", 88: "The Overwhelming", 89: "The Dawn", 90: "The City",
    91: "The Sun", 92: "The Night", 93: "The Morning Hours", 94: "The Consolation",
    95: "The Fig", 96: "The Clot", 97: "The Power, Fate", 98: "The Evidence",
    99: "The Earthquake", 100: "The Chargers", 101: "The Calamity", 102: "Competition",
    103: "The Declining Day, Epoch", 104: "The Traducer", 105: "The Elephant",
    106: "Quraysh", 107: "Almsgiving", 108: "Abundance", 109: "The Disbelievers",
    110: "Divine Support", 111: "The Palm Fibre", 112: "Sincerity", 113: "The Dawn",
    114: "Mankind",
}

# Total ayah count per surah (Hafs numbering, 6236 in total)
SURAH_AYAH_COUNTS: dict[int, int] = {
    1: 7, 2: 286, 3: 200, 4: 176, 5: 120, 6: 165, 7: 206, 8: 75, 9: 129, 10: 109,
    11: 123, 12: 111, 13: 43, 14: 52, 15: 99, 16: 128, 17: 111, 18: 110, 19: 98, 20: 135,
    21: 112, 22: 78, 23: 118, 24: 64, 25: 77, 26: 227, 27: 93, 28: 88, 29: 69, 30: 60,
    31: 34, 32: 30, 33: 73, 34: 54, 35: 45, 36: 83, 37: 182, 38: 88, 39: 75, 40: 85,
    41: 54, 42: 53, 43: 89, 44: 59, 45: 37, 46: 35, 47: 38, 48: 29, 49: 18, 50: 45,
    51: 60, 52: 49, 53: 62, 54: 55, 55: 78, 56: 96, 57: 29, 58: 22, 59: 24, 60: 13,
    61: 14, 62: 11, 63: 11, 64: 18, 65: 12, 66: 12, 67: 30, 68: 52, 69: 52, 70: 44,
    71: 28, 72: 28, 73: 20, 74: 56, 75: 40, 76: 31, 77: 50, 78: 40, 79: 46, 80: 42,
    81: 29, 82: 19, 83: 36, 84: 25, 85: 22, 86: 17, 87: 19, 88: 26, 89: 30, 90: 20,
    91: 15, 92: 21, 93: 11, 94: 8, 95: 8, 96: 19, 97: 5, 98: 8, 99: 8, 100: 11,
    101: 11, 102: 8, 103: 3, 104: 9, 105: 5, 106: 4, 107: 7, 108: 3, 109: 6, 110: 3,
    111: 5, 112: 4, 113: 5, 114: 6,
}

MEDINAN_SURAHS: frozenset[int] = frozenset({
    2, 3, 4, 5, 8, 9, 13, 22, 24, 33, 47, 48, 49, 55, 57, 58, 59, 60,
    61, 62, 63, 64, 65, 66, 76, 98, 99, 110,
})

TOTAL_SURAHS = 114
TOTAL_AYAHS = 6236


class RevelationType(str, Enum):
    """Place of revelation of a surah."""

    MECCAN = "meccan"
    MEDINAN = "medinan"


class Surah(BaseModel):
    """
    Represents a Surah (chapter) of the Quran.

    Attributes:
        id: Surah number (1-114)
        name_arabic: Arabic name of the surah
        name_english: English transliteration
        name_translation: English meaning of the name
        revelation_type: Meccan or Medinan
        total_ayahs: Declared number of ayahs in this surah
        bismillah_pre: Whether the surah is preceded by a separate basmala
    """

    id: int = Field(
        ...,
        description="Surah number (1-114)",
        ge=1,
        le=TOTAL_SURAHS,
    )
    name_arabic: str = Field(
        ...,
        description="Arabic name of the surah",
        min_length=1,
    )
    name_english: str = Field(
        ...,
        description="English transliteration of the surah name",
    )
    name_translation: str = Field(
        ...,
        description="English meaning of the surah name",
    )
    revelation_type: RevelationType = Field(
        ...,
        description="Revelation type: 'meccan' or 'medinan'",
    )
    total_ayahs: int = Field(
        ...,
        description="Declared number of ayahs in this surah",
        ge=1,
    )
    bismillah_pre: bool = Field(
        default=True,
        description="Whether a separate basmala precedes the first ayah",
    )

    @classmethod
    def from_id(cls, surah_id: int) -> "Surah":
        """
        Create a Surah instance from its ID using built-in metadata.

        Args:
            surah_id: Surah number (1-114)

        Returns:
            Surah instance with metadata
        """
        if surah_id < 1 or surah_id > TOTAL_SURAHS:
            raise ValueError(f"Invalid surah_id: {surah_id}. Must be 1-114.")

        return cls(
            id=surah_id,
            name_arabic=SURAH_NAMES[surah_id],
            name_english=SURAH_NAMES_ENGLISH[surah_id],
            name_translation=SURAH_NAMES_TRANSLATION[surah_id],
            revelation_type=(
                RevelationType.MEDINAN if surah_id in MEDINAN_SURAHS else RevelationType.MECCAN
            ),
            total_ayahs=SURAH_AYAH_COUNTS[surah_id],
            # Al-Fatiha counts the basmala as its first ayah; At-Tawba has none
            bismillah_pre=surah_id not in (1, 9),
        )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": 1,
                    "name_arabic": "الفاتحة",
                    "name_english": "Al-Faatiha",
                    "name_translation": "The Opening",
                    "revelation_type": "meccan",
                    "total_ayahs": 7,
                    "bismillah_pre": False,
                }
            ]
        }
    }

    def __str__(self) -> str:
        return f"Surah {self.id}: {self.name_arabic}"
