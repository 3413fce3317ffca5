# ============================================================================
# src/hmr_ingestion/constants/referral_sections.py
# ============================================================================
"""
Referral Letter Sections

Section headers recognised in GP referral letters. A section runs from its
header line to the next line holding any other known header, the letter's
sign-off, or end of text.

Also holds the sample referral letter used when no text can be acquired.
"""

SIGN_OFF = r'Yours\s+(?:sincerely|faithfully)'

# section -> header alternatives, tried in order
SECTION_HEADERS = {
    'current_conditions': (
        r'Current\s+Medical\s+Conditions?',
        r'Medical\s+Conditions?',
    ),
    'past_medical_history': (
        r'Past\s+Medical\s+History',
    ),
    'allergies': (
        r'Allergies',
        r'Known\s+Allergies',
    ),
    'medications': (
        r'Medications?',
        r'Current\s+Medications?',
    ),
}


def terminators_for(section: str) -> tuple:
    """Headers that close the given section"""
    return tuple(
        header
        for name, headers in SECTION_HEADERS.items()
        if name != section
        for header in headers
    )


SAMPLE_REFERRAL_TEXT = """
      CASEY MEDICAL CENTRE
      197 High Street
      Cranbourne VIC 3977
      Ph: 03 5991 1222

      22/04/2025

      Mr Avishkar Lal
      Pharmacy Home Review

      Dear Mr Avishkar Lal

      RE: Mrs Margaret Dempster
      DOB: 24/01/1938
      Medicare No: 2286533TB

      Thank you for seeing patient re: Domiciliary Medication Management Review (DMMR)

      This patient has:
      1. a chronic medical condition or a complex medication regimen; and
      2. is not having therapeutic goals met.

      In particular, she still has an essential tremor in the right hand, and she has forgotten to take her Inderal.

      Current Medical Conditions
      Essential tremor
      Hypertension
      Hypercholesterolaemia
      Osteoarthritis
      Osteoporosis

      Past Medical History
      Hearing impaired
      Right Total knee replacement
      Pain, back
      Left Total knee replacement

      Allergies
      Roxithromycin - Rash, Severe

      Medications
      Eleuphrat 0.05% Cream Apply daily as directed.
      Hydrozole 1%;1% Cream 1 Application Apply twice a day for 14 days. Take for 14 Days.
      Inderal 40mg Tablet 1/2 In the morning, 1 daily
      Lipitor 40mg Tablet 1 daily
      Nexium 40mg Tablet 1 Tablet Daily
      Prolia 60mg/mL Injection 1 Injection inj every 6 months.
      Rozex 0.75% Gel apply twice daily after washing.
      Terbinafine 1% Cream Apply twice a day until resolution of rash.
      Vagifem Low 10mcg Pessaries insert pv nocte twice per week.
      Panadol Osteo 665mg Tablet 2 tablets twice daily
      Calcium Carbonate 600mg Tablet 1 tablet daily
      Vitamin D3 1000IU Capsule 1 capsule daily

      Yours sincerely
      Dr Brett Ogilvie
      Provider No: 2286533TB
      1s Morison Road
      Clyde 3978

      Email: casey@caseymedical.com.au
"""
