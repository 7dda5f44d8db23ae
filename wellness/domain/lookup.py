"""
Static medical lookup tables and side-effect term normalization.

Terms coming from openFDA are MedDRA preferred terms ("dry mouth",
"weight increased"). They are shown to the patient title-cased, with a
plain-language description when one is known.
"""

import re

# Terms reported to openFDA that are not symptoms the patient can rate
EXCLUDED_TERMS: frozenset[str] = frozenset(
    {
        "drug ineffective",
        "off label use",
        "product substitution issue",
        "therapeutic response unexpected",
        "drug interaction",
        "drug exposure during pregnancy",
        "intentional product misuse",
        "product use issue",
        "no adverse event",
        "condition aggravated",
        "death",
        "completed suicide",
        "self injury",
        "drug dependence",
        "drug abuse",
        "intentional overdose",
        "accidental overdose",
        "product quality issue",
        "product complaint",
        "therapeutic response decreased",
        "therapeutic response increased",
        "medication error",
        "wrong drug administered",
        "drug dose omission",
        "inappropriate schedule of drug administration",
    }
)

# Patient-friendly descriptions keyed by lowercased MedDRA term
DESCRIPTIONS: dict[str, str] = {
    "nausea": "A queasy feeling in the stomach that may cause an urge to vomit.",
    "headache": "Pain or pressure in the head, ranging from mild to severe.",
    "dizziness": "A sensation of lightheadedness or feeling unsteady on your feet.",
    "fatigue": "Persistent tiredness or exhaustion that doesn't improve with rest.",
    "diarrhoea": "Frequent loose or watery bowel movements.",
    "diarrhea": "Frequent loose or watery bowel movements.",
    "vomiting": "Forceful emptying of the stomach contents through the mouth.",
    "insomnia": "Difficulty falling asleep, staying asleep, or waking too early.",
    "somnolence": "Excessive drowsiness or sleepiness during the day.",
    "dry mouth": "Reduced saliva production causing a parched feeling in the mouth.",
    "constipation": "Infrequent or difficult bowel movements.",
    "abdominal pain": "Discomfort or cramping felt between the chest and pelvis.",
    "rash": "A noticeable change in the color or texture of the skin.",
    "anxiety": "Feelings of worry, nervousness, or unease.",
    "weight increased": "Noticeable gain in body weight since starting medication.",
    "weight decreased": "Noticeable loss in body weight since starting medication.",
    "tremor": "Involuntary shaking or trembling, often in the hands.",
    "decreased appetite": "Reduced desire to eat or feeling full very quickly.",
    "increased appetite": "Stronger or more frequent urges to eat.",
    "blood pressure increased": "Higher than normal force of blood against artery walls.",
    "palpitations": "Awareness of your heartbeat, which may feel fast or fluttering.",
    "blurred vision": "Difficulty seeing clearly, as though looking through fog.",
    "muscle pain": "Aching or soreness in the muscles.",
    "arthralgia": "Pain in one or more joints without visible swelling.",
    "myalgia": "Muscle aches or soreness, often felt as a dull pain.",
    "dyspepsia": "Indigestion: discomfort or burning in the upper stomach area.",
    "back pain": "Aching or stiffness felt in the lower, middle, or upper back.",
    "upper respiratory tract infection": "Common cold-like symptoms: sore throat, runny nose, cough.",
    "cough": "Repeated reflex to clear the airways, may be dry or productive.",
    "pruritus": "Persistent itching of the skin that causes an urge to scratch.",
    "hyperhidrosis": "Excessive sweating beyond what is needed to cool the body.",
    "oedema": "Swelling caused by fluid buildup, often in feet, ankles, or hands.",
    "edema": "Swelling caused by fluid buildup, often in feet, ankles, or hands.",
    "peripheral edema": "Swelling in the lower legs, ankles, or feet due to fluid retention.",
    "depression": "Persistent feelings of sadness, hopelessness, or loss of interest.",
    "sexual dysfunction": "Changes in sexual desire, arousal, or ability to reach climax.",
    "erectile dysfunction": "Difficulty achieving or maintaining an erection.",
    "libido decreased": "Reduced interest in or desire for sexual activity.",
    "flatulence": "Excess gas in the digestive tract causing bloating or passing gas.",
    "nasal congestion": "Stuffy or blocked nose making it difficult to breathe through the nostrils.",
    "rhinitis": "Inflammation of the nasal passages causing congestion or runny nose.",
    "urinary tract infection": "Infection in the bladder or urethra causing painful or frequent urination.",
    "alopecia": "Thinning or loss of hair from the scalp or body.",
    "feeling abnormal": "A general sense that something feels off or different in your body.",
    "malaise": "A general feeling of discomfort, unease, or being unwell.",
    "asthenia": "Overall weakness or lack of energy making daily activities harder.",
    "pain in extremity": "Aching or discomfort in the arms, legs, hands, or feet.",
    "paraesthesia": "Tingling, numbness, or a 'pins and needles' sensation in the skin.",
    "hypoaesthesia": "Reduced sensitivity to touch or sensation in part of the body.",
    "tachycardia": "Resting heart rate faster than normal, above ~100 beats per minute.",
    "hot flush": "Sudden feeling of warmth spreading through the body, often with redness.",
    "dyspnoea": "Shortness of breath or difficulty breathing.",
    "chest pain": "Discomfort, pressure, or sharp pain felt in the chest area.",
    "irritability": "Feeling easily annoyed, frustrated, or agitated.",
    "mood swings": "Rapid or unpredictable changes in emotional state.",
    "drug hypersensitivity": "An allergic-type reaction to a medication.",
    "urticaria": "Raised, itchy welts on the skin, commonly called hives.",
    "fall": "Loss of balance leading to an unintended drop to the ground.",
    "amnesia": "Partial or total memory loss, often short-term.",
    "confusional state": "Difficulty thinking clearly, feeling disoriented or muddled.",
}

# Most commonly reported terms per generic medication, used when lookups fail
_GENERIC_SIDE_EFFECTS: dict[str, tuple[str, ...]] = {
    "sertraline": ("nausea", "diarrhea", "insomnia", "dry mouth", "fatigue", "dizziness", "headache", "decreased appetite", "hyperhidrosis", "tremor", "sexual dysfunction", "somnolence"),  # noqa: E501
    "fluoxetine": ("nausea", "headache", "insomnia", "anxiety", "somnolence", "diarrhea", "decreased appetite", "dry mouth", "tremor", "dizziness", "asthenia", "hyperhidrosis"),  # noqa: E501
    "escitalopram": ("nausea", "headache", "insomnia", "somnolence", "diarrhea", "dry mouth", "dizziness", "fatigue", "constipation", "hyperhidrosis", "libido decreased", "sexual dysfunction"),  # noqa: E501
    "citalopram": ("nausea", "dry mouth", "somnolence", "insomnia", "diarrhea", "headache", "dizziness", "tremor", "hyperhidrosis", "fatigue", "decreased appetite", "constipation"),  # noqa: E501
    "paroxetine": ("nausea", "somnolence", "dry mouth", "headache", "constipation", "dizziness", "insomnia", "diarrhea", "asthenia", "tremor", "hyperhidrosis", "sexual dysfunction"),  # noqa: E501
    "venlafaxine": ("nausea", "headache", "dizziness", "somnolence", "dry mouth", "insomnia", "constipation", "hyperhidrosis", "asthenia", "anxiety", "blurred vision", "tremor"),  # noqa: E501
    "duloxetine": ("nausea", "headache", "dry mouth", "fatigue", "somnolence", "constipation", "dizziness", "insomnia", "diarrhea", "decreased appetite", "hyperhidrosis", "abdominal pain"),  # noqa: E501
    "bupropion": ("headache", "dry mouth", "nausea", "insomnia", "dizziness", "constipation", "tremor", "anxiety", "tachycardia", "hyperhidrosis", "rash", "abdominal pain"),  # noqa: E501
    "mirtazapine": ("somnolence", "increased appetite", "weight increased", "dry mouth", "dizziness", "constipation", "asthenia", "fatigue", "peripheral edema", "headache", "abnormal dreams", "confusional state"),  # noqa: E501
    "trazodone": ("somnolence", "headache", "dry mouth", "dizziness", "nausea", "fatigue", "constipation", "blurred vision", "nasal congestion", "hyperhidrosis", "confusion", "palpitations"),  # noqa: E501
    "amitriptyline": ("somnolence", "dry mouth", "constipation", "dizziness", "weight increased", "blurred vision", "headache", "nausea", "fatigue", "urinary retention", "tachycardia", "tremor"),  # noqa: E501
    "alprazolam": ("somnolence", "dizziness", "fatigue", "headache", "dry mouth", "constipation", "nausea", "irritability", "decreased appetite", "confusional state", "insomnia", "blurred vision"),  # noqa: E501
    "lorazepam": ("somnolence", "dizziness", "fatigue", "headache", "confusional state", "nausea", "amnesia", "depression", "constipation", "blurred vision", "asthenia", "irritability"),  # noqa: E501
    "clonazepam": ("somnolence", "dizziness", "fatigue", "depression", "headache", "confusional state", "nausea", "amnesia", "constipation", "decreased appetite", "irritability", "insomnia"),  # noqa: E501
    "diazepam": ("somnolence", "fatigue", "dizziness", "headache", "confusional state", "amnesia", "nausea", "constipation", "depression", "blurred vision", "asthenia", "tremor"),  # noqa: E501
    "quetiapine": ("somnolence", "dizziness", "headache", "dry mouth", "weight increased", "constipation", "fatigue", "dyspepsia", "tachycardia", "peripheral edema", "blurred vision", "increased appetite"),  # noqa: E501
    "aripiprazole": ("headache", "nausea", "insomnia", "anxiety", "somnolence", "constipation", "dizziness", "vomiting", "fatigue", "blurred vision", "weight increased", "tremor"),  # noqa: E501
    "lamotrigine": ("headache", "nausea", "rash", "dizziness", "insomnia", "somnolence", "fatigue", "blurred vision", "vomiting", "tremor", "back pain", "rhinitis"),  # noqa: E501
    "lithium": ("nausea", "tremor", "diarrhea", "vomiting", "dizziness", "fatigue", "headache", "weight increased", "dry mouth", "tachycardia", "polyuria", "thirst"),  # noqa: E501
    "gabapentin": ("somnolence", "dizziness", "fatigue", "headache", "nausea", "peripheral edema", "weight increased", "blurred vision", "dry mouth", "constipation", "tremor", "ataxia"),  # noqa: E501
    "pregabalin": ("dizziness", "somnolence", "headache", "peripheral edema", "dry mouth", "weight increased", "blurred vision", "fatigue", "constipation", "nausea", "tremor", "back pain"),  # noqa: E501
    "metformin": ("diarrhea", "nausea", "vomiting", "abdominal pain", "flatulence", "decreased appetite", "headache", "dyspepsia", "asthenia", "fatigue", "dizziness", "constipation"),  # noqa: E501
    "lisinopril": ("headache", "dizziness", "cough", "fatigue", "nausea", "diarrhea", "hypotension", "rash", "chest pain", "dyspnoea", "back pain", "asthenia"),  # noqa: E501
    "amlodipine": ("peripheral edema", "headache", "dizziness", "fatigue", "nausea", "flushing", "palpitations", "somnolence", "abdominal pain", "dyspnoea", "chest pain", "back pain"),  # noqa: E501
    "atorvastatin": ("headache", "myalgia", "arthralgia", "diarrhea", "nausea", "back pain", "pain in extremity", "insomnia", "urinary tract infection", "dyspepsia", "nasopharyngitis", "fatigue"),  # noqa: E501
    "omeprazole": ("headache", "diarrhea", "nausea", "abdominal pain", "flatulence", "constipation", "vomiting", "dizziness", "rash", "cough", "back pain", "fatigue"),  # noqa: E501
    "pantoprazole": ("headache", "diarrhea", "nausea", "abdominal pain", "flatulence", "constipation", "vomiting", "dizziness", "arthralgia", "insomnia", "rash", "fatigue"),  # noqa: E501
    "levothyroxine": ("headache", "fatigue", "palpitations", "insomnia", "tremor", "anxiety", "diarrhea", "weight decreased", "hyperhidrosis", "hot flush", "alopecia", "nausea"),  # noqa: E501
    "metoprolol": ("fatigue", "dizziness", "headache", "diarrhea", "nausea", "bradycardia", "dyspnoea", "depression", "insomnia", "peripheral edema", "chest pain", "back pain"),  # noqa: E501
    "losartan": ("dizziness", "headache", "fatigue", "back pain", "diarrhea", "cough", "nausea", "chest pain", "dyspnoea", "peripheral edema", "insomnia", "arthralgia"),  # noqa: E501
    "hydrochlorothiazide": ("dizziness", "headache", "fatigue", "nausea", "muscle cramps", "hypokalaemia", "hyperuricaemia", "dyspepsia", "diarrhea", "back pain", "blurred vision", "rash"),  # noqa: E501
    "montelukast": ("headache", "upper respiratory tract infection", "cough", "abdominal pain", "diarrhea", "nausea", "fatigue", "rash", "insomnia", "dizziness", "fever", "irritability"),  # noqa: E501
    "ibuprofen": ("nausea", "headache", "dizziness", "dyspepsia", "abdominal pain", "diarrhea", "constipation", "vomiting", "rash", "flatulence", "edema", "fatigue"),  # noqa: E501
    "acetaminophen": ("nausea", "headache", "rash", "vomiting", "abdominal pain", "diarrhea", "fatigue", "dizziness", "pruritus", "constipation", "insomnia", "dyspepsia"),  # noqa: E501
    "aspirin": ("nausea", "dyspepsia", "abdominal pain", "diarrhea", "headache", "dizziness", "vomiting", "rash", "fatigue", "pruritus", "tinnitus", "constipation"),  # noqa: E501
    "adderall": ("decreased appetite", "insomnia", "headache", "dry mouth", "nausea", "anxiety", "dizziness", "tachycardia", "irritability", "abdominal pain", "weight decreased", "palpitations"),  # noqa: E501
    "methylphenidate": ("decreased appetite", "insomnia", "headache", "nausea", "abdominal pain", "anxiety", "dizziness", "irritability", "tachycardia", "weight decreased", "dry mouth", "vomiting"),  # noqa: E501
    "lisdexamfetamine": ("decreased appetite", "insomnia", "dry mouth", "headache", "nausea", "irritability", "anxiety", "dizziness", "weight decreased", "diarrhea", "tachycardia", "vomiting"),  # noqa: E501
    "atomoxetine": ("nausea", "decreased appetite", "headache", "dry mouth", "insomnia", "dizziness", "constipation", "fatigue", "vomiting", "abdominal pain", "somnolence", "irritability"),  # noqa: E501
    "prednisone": ("weight increased", "insomnia", "mood swings", "increased appetite", "headache", "nausea", "edema", "fatigue", "dizziness", "dyspepsia", "muscle pain", "hyperhidrosis"),  # noqa: E501
    "amoxicillin": ("diarrhea", "nausea", "rash", "vomiting", "headache", "abdominal pain", "pruritus", "urticaria", "fatigue", "dizziness", "dyspepsia", "flatulence"),  # noqa: E501
    "azithromycin": ("diarrhea", "nausea", "abdominal pain", "vomiting", "headache", "rash", "fatigue", "dizziness", "pruritus", "flatulence", "dyspepsia", "constipation"),  # noqa: E501
    "ciprofloxacin": ("nausea", "diarrhea", "headache", "rash", "vomiting", "abdominal pain", "dizziness", "arthralgia", "insomnia", "dyspepsia", "fatigue", "myalgia"),  # noqa: E501
    "warfarin": ("haemorrhage", "nausea", "rash", "fatigue", "headache", "dizziness", "abdominal pain", "pruritus", "alopecia", "vomiting", "diarrhea", "chest pain"),  # noqa: E501
}

# Brand name -> generic name
BRAND_NAMES: dict[str, str] = {
    "zoloft": "sertraline",
    "prozac": "fluoxetine",
    "lexapro": "escitalopram",
    "celexa": "citalopram",
    "paxil": "paroxetine",
    "effexor": "venlafaxine",
    "cymbalta": "duloxetine",
    "wellbutrin": "bupropion",
    "remeron": "mirtazapine",
    "xanax": "alprazolam",
    "ativan": "lorazepam",
    "klonopin": "clonazepam",
    "valium": "diazepam",
    "seroquel": "quetiapine",
    "abilify": "aripiprazole",
    "lamictal": "lamotrigine",
    "neurontin": "gabapentin",
    "lyrica": "pregabalin",
    "lipitor": "atorvastatin",
    "prilosec": "omeprazole",
    "synthroid": "levothyroxine",
    "singulair": "montelukast",
    "advil": "ibuprofen",
    "tylenol": "acetaminophen",
    "ritalin": "methylphenidate",
    "concerta": "methylphenidate",
    "vyvanse": "lisdexamfetamine",
    "strattera": "atomoxetine",
    "zithromax": "azithromycin",
    "coumadin": "warfarin",
}

FALLBACK_SIDE_EFFECTS: dict[str, tuple[str, ...]] = {
    **_GENERIC_SIDE_EFFECTS,
    **{brand: _GENERIC_SIDE_EFFECTS[generic] for brand, generic in BRAND_NAMES.items()},
}

# Salt and release-form tokens that keep openFDA from matching a product name
_FORM_SUFFIX_RE = re.compile(r"\b(?:hcl|hydrochloride|sulfate|sodium|er|xr|cr|sr)\b", re.IGNORECASE)
_WORD_START_RE = re.compile(r"(^|\s)(\S)")


def title_case(term: str) -> str:
    """Lowercase ``term``, then capitalize the first character and every one after whitespace.

    >>> title_case("DRY mouth")
    'Dry Mouth'
    """
    return _WORD_START_RE.sub(lambda m: m.group(1) + m.group(2).upper(), term.lower())


def describe(term: str) -> str:
    """Description for a term, trying the naive singular form before giving up."""
    lower = term.lower()
    if lower in DESCRIPTIONS:
        return DESCRIPTIONS[lower]
    if lower.endswith("s"):
        return DESCRIPTIONS.get(lower[:-1], "")
    return ""


def simplify_medication_name(name: str) -> str:
    """Strip pharmaceutical-form tokens ("Metformin ER" -> "Metformin")."""
    return " ".join(_FORM_SUFFIX_RE.sub(" ", name).split())


def fallback_terms(medication: str) -> tuple[str, ...] | None:
    return FALLBACK_SIDE_EFFECTS.get(medication.strip().lower())
