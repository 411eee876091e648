"""
Curated Condition-Drug Mappings (Tier 1)

Hand-maintained keyword -> drug list table. Each list is ordered by clinical
preference, most commonly prescribed first. Names are generic or brand names
that RxNorm resolves.

Matching is substring containment against the normalized condition name,
in table order: "type 2 diabetes mellitus" hits "diabetes". Because the
table is scanned in insertion order, broader keywords listed earlier win
over more specific ones listed later.
"""

from typing import Dict, List, Mapping, Optional, Tuple


# Shared by every weight-management alias below
OBESITY_DRUGS = [
    "Wegovy", "Saxenda", "Zepbound", "phentermine/topiramate", "naltrexone/bupropion",
    "phentermine", "orlistat", "diethylpropion", "Ozempic", "Mounjaro", "metformin",
]

CONDITION_DRUG_MAPPINGS: Dict[str, List[str]] = {
    "obesity": OBESITY_DRUGS,
    "weight": OBESITY_DRUGS,
    "morbid": OBESITY_DRUGS,
    "overweight": OBESITY_DRUGS,
    "bmi": OBESITY_DRUGS,
    "diabetes": ["metformin", "semaglutide", "empagliflozin", "dapagliflozin", "liraglutide",
        "sitagliptin", "glipizide", "insulin glargine", "dulaglutide", "canagliflozin"],
    "glucose": ["metformin", "semaglutide", "empagliflozin", "sitagliptin", "glipizide",
        "insulin glargine"],
    "hypothyroid": ["levothyroxine", "liothyronine"],
    "hyperthyroid": ["methimazole", "propylthiouracil", "propranolol"],
    "hypertension": ["lisinopril", "amlodipine", "losartan", "hydrochlorothiazide",
        "metoprolol", "valsartan", "olmesartan", "chlorthalidone"],
    "blood pressure": ["lisinopril", "amlodipine", "losartan", "hydrochlorothiazide",
        "metoprolol", "valsartan"],
    "high blood pressure": ["lisinopril", "amlodipine", "losartan", "hydrochlorothiazide",
        "metoprolol"],
    "arrhythmia": ["metoprolol", "amiodarone", "flecainide", "sotalol", "diltiazem", "digoxin",
        "propafenone", "dronedarone"],
    "tachycardia": ["metoprolol", "diltiazem", "verapamil", "adenosine", "amiodarone"],
    "bradycardia": ["atropine", "isoproterenol", "dopamine"],
    "cholesterol": ["atorvastatin", "rosuvastatin", "simvastatin", "pravastatin", "ezetimibe",
        "evolocumab", "alirocumab", "fenofibrate"],
    "lipid": ["atorvastatin", "rosuvastatin", "simvastatin", "ezetimibe", "fenofibrate"],
    "heart failure": ["sacubitril/valsartan", "carvedilol", "lisinopril", "spironolactone",
        "furosemide", "empagliflozin", "dapagliflozin"],
    "atrial fibrillation": ["apixaban", "rivaroxaban", "warfarin", "metoprolol", "diltiazem",
        "amiodarone"],
    "myocardial infarction": ["aspirin", "clopidogrel", "ticagrelor", "prasugrel",
        "metoprolol", "carvedilol", "atorvastatin", "rosuvastatin", "lisinopril", "ramipril",
        "losartan", "nitroglycerin", "isosorbide mononitrate", "enoxaparin", "heparin"],
    "heart attack": ["aspirin", "clopidogrel", "ticagrelor", "metoprolol", "atorvastatin",
        "lisinopril", "nitroglycerin", "enoxaparin"],
    "acute coronary syndrome": ["aspirin", "clopidogrel", "ticagrelor", "prasugrel",
        "metoprolol", "atorvastatin", "lisinopril", "enoxaparin", "heparin", "nitroglycerin"],
    "acute coronary": ["aspirin", "clopidogrel", "ticagrelor", "metoprolol", "atorvastatin",
        "lisinopril", "enoxaparin"],
    "st elevation": ["aspirin", "clopidogrel", "ticagrelor", "prasugrel", "metoprolol",
        "atorvastatin", "lisinopril", "enoxaparin", "heparin", "bivalirudin"],
    "stemi": ["aspirin", "clopidogrel", "ticagrelor", "prasugrel", "metoprolol",
        "atorvastatin", "lisinopril", "enoxaparin"],
    "nstemi": ["aspirin", "clopidogrel", "ticagrelor", "metoprolol", "atorvastatin",
        "lisinopril", "enoxaparin"],
    "non-st elevation": ["aspirin", "clopidogrel", "ticagrelor", "metoprolol", "atorvastatin",
        "lisinopril", "enoxaparin"],
    "angina": ["nitroglycerin", "isosorbide mononitrate", "isosorbide dinitrate", "metoprolol",
        "atenolol", "amlodipine", "diltiazem", "ranolazine", "aspirin", "atorvastatin"],
    "chest pain": ["nitroglycerin", "aspirin", "metoprolol", "atorvastatin"],
    "coronary artery disease": ["aspirin", "clopidogrel", "atorvastatin", "rosuvastatin",
        "metoprolol", "lisinopril", "amlodipine", "nitroglycerin", "ezetimibe"],
    "coronary artery": ["aspirin", "clopidogrel", "atorvastatin", "metoprolol", "lisinopril",
        "amlodipine"],
    "ischemic heart": ["aspirin", "clopidogrel", "atorvastatin", "metoprolol", "lisinopril",
        "nitroglycerin"],
    "cardiac ischemia": ["aspirin", "atorvastatin", "metoprolol", "lisinopril", "nitroglycerin"],
    "unstable angina": ["aspirin", "clopidogrel", "ticagrelor", "metoprolol", "atorvastatin",
        "lisinopril", "enoxaparin", "nitroglycerin"],
    "depression": ["sertraline", "escitalopram", "fluoxetine", "venlafaxine", "duloxetine",
        "bupropion", "citalopram", "mirtazapine"],
    "depressive": ["sertraline", "escitalopram", "fluoxetine", "venlafaxine", "duloxetine",
        "bupropion"],
    "anxiety": ["sertraline", "escitalopram", "venlafaxine", "buspirone", "duloxetine",
        "paroxetine", "lorazepam", "alprazolam"],
    "bipolar": ["lithium", "lamotrigine", "valproate", "quetiapine", "aripiprazole",
        "olanzapine"],
    "adhd": ["methylphenidate", "amphetamine", "lisdexamfetamine", "atomoxetine", "guanfacine"],
    "insomnia": ["zolpidem", "eszopiclone", "trazodone", "suvorexant", "lemborexant",
        "melatonin"],
    "sleep": ["zolpidem", "eszopiclone", "trazodone", "suvorexant", "melatonin"],
    "asthma": ["fluticasone", "budesonide", "albuterol", "fluticasone/salmeterol",
        "budesonide/formoterol", "montelukast", "tiotropium", "dupilumab"],
    "copd": ["tiotropium", "fluticasone/salmeterol", "budesonide/formoterol", "umeclidinium",
        "albuterol", "roflumilast"],
    "chronic obstructive pulmonary": ["albuterol", "ipratropium", "tiotropium", "fluticasone",
        "budesonide", "salmeterol", "formoterol", "prednisone", "roflumilast"],
    "pneumonia": ["amoxicillin", "azithromycin", "levofloxacin", "ceftriaxone", "doxycycline",
        "moxifloxacin", "ampicillin", "piperacillin"],
    "bronchitis": ["albuterol", "guaifenesin", "dextromethorphan", "azithromycin",
        "amoxicillin", "prednisone", "ipratropium"],
    "gerd": ["omeprazole", "esomeprazole", "pantoprazole", "lansoprazole", "famotidine",
        "ranitidine"],
    "reflux": ["omeprazole", "esomeprazole", "pantoprazole", "famotidine"],
    "heartburn": ["omeprazole", "esomeprazole", "pantoprazole", "famotidine"],
    "gastroesophageal reflux": ["omeprazole", "pantoprazole", "esomeprazole", "lansoprazole",
        "famotidine", "sucralfate", "metoclopramide"],
    "acid reflux": ["omeprazole", "pantoprazole", "famotidine", "calcium carbonate"],
    "peptic ulcer": ["omeprazole", "pantoprazole", "sucralfate", "misoprostol", "famotidine",
        "amoxicillin", "clarithromycin", "metronidazole", "bismuth subsalicylate"],
    "gastric ulcer": ["omeprazole", "pantoprazole", "sucralfate", "famotidine"],
    "crohn": ["mesalamine", "sulfasalazine", "budesonide", "prednisone", "azathioprine",
        "mercaptopurine", "methotrexate", "infliximab", "adalimumab", "vedolizumab"],
    "ulcerative colitis": ["mesalamine", "sulfasalazine", "budesonide", "prednisone",
        "azathioprine", "infliximab", "adalimumab", "vedolizumab", "tofacitinib"],
    "inflammatory bowel": ["mesalamine", "sulfasalazine", "budesonide", "prednisone",
        "infliximab", "adalimumab"],
    "ibs": ["dicyclomine", "hyoscyamine", "linaclotide", "lubiprostone", "rifaximin",
        "alosetron"],
    "irritable bowel": ["dicyclomine", "hyoscyamine", "loperamide", "rifaximin",
        "lubiprostone", "linaclotide", "amitriptyline"],
    "nausea": ["ondansetron", "promethazine", "metoclopramide", "prochlorperazine",
        "granisetron", "scopolamine", "dronabinol"],
    "vomiting": ["ondansetron", "promethazine", "metoclopramide", "prochlorperazine"],
    "constipation": ["polyethylene glycol", "lactulose", "bisacodyl", "senna", "docusate",
        "linaclotide", "lubiprostone", "prucalopride"],
    "diarrhea": ["loperamide", "diphenoxylate", "bismuth subsalicylate", "rifaximin"],
    "pain": ["ibuprofen", "naproxen", "acetaminophen", "celecoxib", "meloxicam", "gabapentin",
        "pregabalin", "tramadol"],
    "back pain": ["ibuprofen", "naproxen", "acetaminophen", "cyclobenzaprine", "methocarbamol",
        "meloxicam", "diclofenac", "gabapentin", "duloxetine", "prednisone"],
    "low back pain": ["ibuprofen", "naproxen", "acetaminophen", "cyclobenzaprine", "meloxicam"],
    "lumbar": ["ibuprofen", "naproxen", "acetaminophen", "cyclobenzaprine", "gabapentin"],
    "headache": ["acetaminophen", "ibuprofen", "naproxen", "sumatriptan", "aspirin"],
    "neuropathy": ["gabapentin", "pregabalin", "duloxetine", "amitriptyline", "nortriptyline",
        "capsaicin", "lidocaine", "carbamazepine", "venlafaxine"],
    "diabetic neuropathy": ["gabapentin", "pregabalin", "duloxetine", "amitriptyline",
        "capsaicin"],
    "osteoarthritis": ["acetaminophen", "ibuprofen", "naproxen", "meloxicam", "diclofenac",
        "celecoxib", "tramadol", "duloxetine"],
    "rheumatoid arthritis": ["methotrexate", "hydroxychloroquine", "sulfasalazine",
        "leflunomide", "adalimumab", "etanercept", "infliximab", "prednisone", "tofacitinib"],
    "rheumatoid": ["methotrexate", "hydroxychloroquine", "sulfasalazine", "adalimumab",
        "etanercept", "prednisone"],
    "arthritis": ["ibuprofen", "naproxen", "meloxicam", "celecoxib", "methotrexate",
        "adalimumab", "etanercept", "prednisone"],
    "psoriasis": ["adalimumab", "etanercept", "ustekinumab", "secukinumab", "ixekizumab",
        "guselkumab", "risankizumab", "methotrexate", "cyclosporine", "apremilast",
        "deucravacitinib", "upadacitinib"],
    "migraine": ["sumatriptan", "rizatriptan", "topiramate", "propranolol", "erenumab",
        "fremanezumab", "ubrogepant"],
    "allergy": ["cetirizine", "loratadine", "fexofenadine", "fluticasone nasal", "montelukast",
        "diphenhydramine"],
    "allergic": ["cetirizine", "loratadine", "fexofenadine", "fluticasone nasal", "montelukast"],
    "infection": ["amoxicillin", "azithromycin", "ciprofloxacin", "doxycycline", "cephalexin",
        "sulfamethoxazole/trimethoprim"],
    "urinary": ["nitrofurantoin", "sulfamethoxazole/trimethoprim", "ciprofloxacin",
        "fosfomycin"],
    "urinary tract infection": ["nitrofurantoin", "trimethoprim", "sulfamethoxazole",
        "ciprofloxacin", "levofloxacin", "cephalexin", "amoxicillin", "fosfomycin"],
    "uti": ["nitrofurantoin", "trimethoprim", "sulfamethoxazole", "ciprofloxacin", "cephalexin"],
    "cystitis": ["nitrofurantoin", "trimethoprim", "sulfamethoxazole", "ciprofloxacin",
        "fosfomycin"],
    "pyelonephritis": ["ciprofloxacin", "levofloxacin", "ceftriaxone", "trimethoprim",
        "sulfamethoxazole"],
    "cellulitis": ["cephalexin", "dicloxacillin", "clindamycin", "trimethoprim",
        "sulfamethoxazole", "amoxicillin", "doxycycline", "vancomycin"],
    "sepsis": ["vancomycin", "piperacillin", "tazobactam", "meropenem", "ceftriaxone",
        "norepinephrine", "vasopressin", "hydrocortisone", "cefepime"],
    "septic shock": ["norepinephrine", "vasopressin", "vancomycin", "piperacillin",
        "meropenem", "hydrocortisone", "epinephrine"],
    "covid": ["paxlovid", "nirmatrelvir", "ritonavir", "remdesivir", "dexamethasone",
        "baricitinib", "tocilizumab", "molnupiravir", "enoxaparin"],
    "coronavirus": ["paxlovid", "remdesivir", "dexamethasone", "baricitinib", "tocilizumab"],
    "osteoporosis": ["alendronate", "risedronate", "ibandronate", "denosumab", "teriparatide",
        "raloxifene"],
    "erectile": ["sildenafil", "tadalafil", "vardenafil", "avanafil"],
    "gout": ["allopurinol", "febuxostat", "colchicine", "probenecid"],
    "epilepsy": ["levetiracetam", "lamotrigine", "valproate", "carbamazepine", "phenytoin",
        "topiramate"],
    "seizure": ["levetiracetam", "lamotrigine", "valproate", "carbamazepine", "lorazepam",
        "diazepam", "phenytoin"],
    "parkinson": ["levodopa", "carbidopa", "pramipexole", "ropinirole", "rasagiline",
        "selegiline", "entacapone", "amantadine", "trihexyphenidyl", "apomorphine"],
    "alzheimer": ["donepezil", "rivastigmine", "galantamine", "memantine", "aducanumab",
        "lecanemab"],
    "dementia": ["donepezil", "rivastigmine", "galantamine", "memantine"],
    "stroke": ["alteplase", "aspirin", "clopidogrel", "warfarin", "apixaban", "rivaroxaban",
        "atorvastatin", "lisinopril", "amlodipine"],
    "cerebrovascular": ["aspirin", "clopidogrel", "warfarin", "apixaban", "atorvastatin"],
    "multiple sclerosis": ["interferon beta", "glatiramer", "dimethyl fumarate", "fingolimod",
        "natalizumab", "ocrelizumab", "teriflunomide", "siponimod", "cladribine"],
    "major depressive": ["sertraline", "fluoxetine", "escitalopram", "venlafaxine",
        "duloxetine", "bupropion"],
    "generalized anxiety": ["sertraline", "escitalopram", "venlafaxine", "duloxetine",
        "buspirone"],
    "panic": ["sertraline", "paroxetine", "venlafaxine", "alprazolam", "clonazepam"],
    "schizophrenia": ["risperidone", "olanzapine", "quetiapine", "aripiprazole", "ziprasidone",
        "paliperidone", "clozapine", "haloperidol", "lurasidone"],
    "psychosis": ["risperidone", "olanzapine", "quetiapine", "aripiprazole", "haloperidol"],
    "attention deficit": ["methylphenidate", "amphetamine", "lisdexamfetamine", "atomoxetine",
        "guanfacine"],
    "sleep disorder": ["zolpidem", "eszopiclone", "trazodone", "melatonin", "suvorexant"],
    "hypothyroidism": ["levothyroxine", "liothyronine"],
    "thyroid": ["levothyroxine", "liothyronine", "methimazole", "propylthiouracil"],
    "hyperthyroidism": ["methimazole", "propylthiouracil", "propranolol", "atenolol"],
    "eczema": ["hydrocortisone", "triamcinolone", "tacrolimus", "pimecrolimus", "dupilumab",
        "crisaborole", "hydroxyzine", "cetirizine"],
    "dermatitis": ["hydrocortisone", "triamcinolone", "tacrolimus", "pimecrolimus", "dupilumab"],
    "atopic dermatitis": ["tacrolimus", "pimecrolimus", "dupilumab", "crisaborole",
        "triamcinolone"],
    "acne": ["benzoyl peroxide", "tretinoin", "adapalene", "clindamycin", "doxycycline",
        "isotretinoin", "spironolactone", "azelaic acid"],
    "anemia": ["ferrous sulfate", "iron sucrose", "ferric carboxymaltose", "vitamin b12",
        "cyanocobalamin", "folic acid", "epoetin alfa", "darbepoetin"],
    "iron deficiency": ["ferrous sulfate", "ferrous gluconate", "iron sucrose",
        "ferric carboxymaltose"],
    "allergic rhinitis": ["cetirizine", "loratadine", "fexofenadine", "fluticasone",
        "mometasone", "azelastine", "montelukast", "diphenhydramine"],
    "anaphylaxis": ["epinephrine", "diphenhydramine", "methylprednisolone", "famotidine"],
    "weight loss": ["semaglutide", "liraglutide", "tirzepatide", "phentermine", "orlistat"],
    "deep vein thrombosis": ["enoxaparin", "heparin", "warfarin", "rivaroxaban", "apixaban",
        "edoxaban"],
    "dvt": ["enoxaparin", "heparin", "warfarin", "rivaroxaban", "apixaban"],
    "pulmonary embolism": ["enoxaparin", "heparin", "warfarin", "rivaroxaban", "apixaban",
        "alteplase"],
    "thrombosis": ["enoxaparin", "heparin", "warfarin", "rivaroxaban", "apixaban"],
    "embolism": ["enoxaparin", "heparin", "warfarin", "rivaroxaban", "apixaban"],
}


class CuratedMappingTable:
    """
    Read-only view over a keyword -> drug list mapping.

    The table is immutable after construction and needs no locking.
    """

    def __init__(self, mappings: Optional[Mapping[str, List[str]]] = None):
        source = CONDITION_DRUG_MAPPINGS if mappings is None else mappings
        self._entries: Tuple[Tuple[str, Tuple[str, ...]], ...] = tuple(
            (keyword.lower(), tuple(drugs)) for keyword, drugs in source.items()
        )

    def find(self, normalized_condition: str) -> Optional[List[str]]:
        """
        Find the curated drug list for a normalized condition name.

        Args:
            normalized_condition: Output of normalize_condition()

        Returns:
            Copy of the first matching drug list, or None when no keyword matches
        """
        match = self.match(normalized_condition)
        return match[1] if match else None

    def match(self, normalized_condition: str) -> Optional[Tuple[str, List[str]]]:
        """Like find(), but also returns the keyword that matched."""
        if not normalized_condition:
            return None
        for keyword, drugs in self._entries:
            if keyword in normalized_condition:
                return keyword, list(drugs)
        return None

    def available_conditions(self) -> List[str]:
        """Keywords that have a curated mapping, in match order."""
        return [keyword for keyword, _ in self._entries]

    def total_drug_count(self) -> int:
        """Number of distinct drug names across all mappings."""
        return len({drug for _, drugs in self._entries for drug in drugs})

    def __len__(self) -> int:
        return len(self._entries)
