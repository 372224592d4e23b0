import logging
import re
from collections.abc import Callable

from career_profile.app.models.skill import SkillCategory

log = logging.getLogger(__name__)

# A replaceable skill classifier: skill name in, category out.
SkillClassifier = Callable[[str], SkillCategory]

_C = SkillCategory

# Ordered; first match wins.
_CATEGORY_PATTERNS: list[tuple[re.Pattern, SkillCategory]] = [
    (re.compile(pattern, re.IGNORECASE), category)
    for pattern, category in [
        # Programming languages
        (r"^(java|python|c\+\+|c#|go|golang|rust|ruby|php|swift|kotlin|scala|perl|r)$", _C.PROGRAMMING_LANGUAGE),
        (r"^(javascript|typescript|js|ts|ecmascript|es6)$", _C.PROGRAMMING_LANGUAGE),
        (r"^(sql|pl/sql|t-sql|bash|shell|powershell|matlab|vba|cobol|fortran)$", _C.PROGRAMMING_LANGUAGE),
        (r"^node(\.?js)?$", _C.PROGRAMMING_LANGUAGE),
        # Frameworks and libraries
        (r"^(react|vue|angular|svelte|next|nuxt|ember)(\.?js)?$", _C.FRAMEWORK_LIBRARY),
        (r"^(django|flask|fastapi|rails|ruby on rails|spring( boot)?|laravel|symfony)$", _C.FRAMEWORK_LIBRARY),
        (r"^(express(\.?js)?|\.net|asp\.net|jquery|bootstrap|tailwind( css)?)$", _C.FRAMEWORK_LIBRARY),
        (r"^(tensorflow|pytorch|keras|scikit-learn|pandas|numpy|spark|hadoop)$", _C.FRAMEWORK_LIBRARY),
        # Databases
        (r"^(postgresql|postgres|mysql|mariadb|sqlite|oracle( db)?|sql server|mssql)$", _C.DATABASE),
        (r"^(mongodb|mongo|redis|cassandra|dynamodb|elasticsearch|couchdb|neo4j|snowflake)$", _C.DATABASE),
        # Cloud platforms
        (r"^(aws|amazon web services|azure|microsoft azure|gcp|google cloud( platform)?)$", _C.CLOUD_PLATFORM),
        (r"^(heroku|cloudflare|digitalocean|vercel|netlify|firebase)$", _C.CLOUD_PLATFORM),
        # DevOps
        (r"^(docker|kubernetes|k8s|terraform|ansible|jenkins|helm|puppet|chef)$", _C.DEVOPS_TOOLS),
        (r"^(git|github|gitlab|bitbucket|ci/cd|circleci|github actions|travis ci)$", _C.DEVOPS_TOOLS),
        # Design tools
        (r"^(figma|sketch|invision|adobe xd|zeplin|balsamiq)$", _C.DESIGN_TOOLS),
        # Graphic design, video, audio, photography
        (r"^(photoshop|illustrator|indesign|adobe creative (suite|cloud)|canva|coreldraw)$", _C.GRAPHIC_DESIGN_SOFTWARE),
        (r"^(premiere( pro)?|final cut( pro)?|after effects|davinci resolve|avid media composer)$", _C.VIDEO_EDITING),
        (r"^(pro tools|logic pro|ableton( live)?|audacity|fl studio|cubase)$", _C.AUDIO_PRODUCTION),
        (r"^(lightroom|dslr|studio lighting|canon eos|nikon)$", _C.PHOTOGRAPHY_EQUIPMENT),
        (r"^(copywriting|screenwriting|creative writing|storytelling|editing)$", _C.CREATIVE_WRITING),
        # Healthcare
        (r"^(epic|cerner|meditech|allscripts|athenahealth|emr|ehr)$", _C.MEDICAL_SOFTWARE),
        (r"^(phlebotomy|venipuncture|wound care|intubation|catheterization|suturing)$", _C.MEDICAL_PROCEDURE),
        (r"^(cpr|bls|acls|pals|triage|vital signs)$", _C.PATIENT_CARE),
        (r"^(ecg|ekg|mri|ct scan|ultrasound|x-ray|ventilator|defibrillator)$", _C.MEDICAL_EQUIPMENT),
        (r"^(differential diagnosis|radiology|pathology|patient assessment)$", _C.DIAGNOSTIC_SKILLS),
        # Finance
        (r"^(quickbooks|sage|xero|netsuite|sap( fi)?|oracle financials|freshbooks)$", _C.ACCOUNTING_SOFTWARE),
        (r"^(bloomberg( terminal)?|reuters eikon|thinkorswim|metatrader|interactive brokers)$", _C.TRADING_PLATFORMS),
        (r"^(financial modeling|dcf|valuation|budgeting|forecasting|financial analysis|fp&a)$", _C.FINANCIAL_ANALYSIS),
        (r"^(gaap|ifrs|sox|sarbanes-oxley|aml|kyc|hipaa|gdpr|finra)$", _C.REGULATORY_COMPLIANCE),
        (r"^(risk assessment|risk management|credit risk|market risk|var)$", _C.RISK_MANAGEMENT),
        # Legal
        (r"^(westlaw|lexisnexis|lexis|bloomberg law)$", _C.LEGAL_RESEARCH),
        (r"^(clio|relativity|imanage|netdocuments|practicepanther)$", _C.LEGAL_SOFTWARE),
        (r"^(e-discovery|ediscovery|docketing|case management)$", _C.CASE_MANAGEMENT),
        (r"^(litigation|trial advocacy|depositions|legal writing|oral argument)$", _C.LITIGATION_SKILLS),
        (r"^(contract (drafting|negotiation|review)|m&a|commercial contracts)$", _C.CONTRACT_LAW),
        # Manufacturing and operations
        (r"^(cnc|plc|lathe|welding|cad/cam|autocad|solidworks|injection molding)$", _C.MANUFACTURING_EQUIPMENT),
        (r"^(six sigma|lean six sigma|iso 9001|spc|quality assurance|qa/qc)$", _C.QUALITY_CONTROL),
        (r"^(lean( manufacturing)?|kaizen|5s|kanban|just in time|jit)$", _C.LEAN_METHODOLOGY),
        (r"^(osha|lockout/tagout|loto|hazmat|haccp)$", _C.SAFETY_PROTOCOLS),
        (r"^(logistics|procurement|inventory management|erp|sap mm|supply chain management)$", _C.SUPPLY_CHAIN),
        # Sales and marketing
        (r"^(salesforce|hubspot|zoho( crm)?|pipedrive|dynamics 365|microsoft dynamics)$", _C.CRM_SYSTEMS),
        (r"^(seo|sem|ppc|google ads|google analytics|facebook ads|email marketing|social media marketing)$", _C.DIGITAL_MARKETING),
        (r"^(cold calling|b2b sales|b2c sales|account management|negotiation|lead generation)$", _C.SALES_TECHNIQUES),
        (r"^(market research|competitive analysis|surveys|focus groups|customer segmentation)$", _C.MARKET_RESEARCH),
        (r"^(content marketing|blogging|content strategy|video production)$", _C.CONTENT_CREATION),
        # Education
        (r"^(curriculum (design|development)|lesson planning|instructional design)$", _C.CURRICULUM_DEVELOPMENT),
        (r"^(canvas|blackboard|moodle|google classroom|schoology|d2l)$", _C.LEARNING_MANAGEMENT_SYSTEMS),
        (r"^(smartboard|kahoot|nearpod|edtech)$", _C.EDUCATIONAL_TECHNOLOGY),
        (r"^(formative assessment|summative assessment|rubrics|standardized testing)$", _C.ASSESSMENT_METHODS),
        (r"^(classroom management|behavior management|differentiated instruction)$", _C.CLASSROOM_MANAGEMENT),
        # Universal
        (r"^(jira|asana|trello|ms project|microsoft project|monday\.com|confluence)$", _C.PROJECT_MANAGEMENT),
        (r"^(pmp|prince2|capm|project management)$", _C.PROJECT_MANAGEMENT),
        (r"^(agile|scrum|waterfall|devops|tdd|bdd|itil)$", _C.METHODOLOGY),
        (r"^(leadership|communication|teamwork|problem solving|time management|mentoring|public speaking)$", _C.SOFT_SKILLS),
        (r"^(english|spanish|french|german|mandarin|chinese|japanese|portuguese|arabic|hindi|italian|korean|russian)$", _C.LANGUAGES),
        (r"^(cpa|cfa|aws certified .+|cissp|ccna|comptia .+|rn|lpn)$", _C.CERTIFICATION),
    ]
]

# Keyword buckets; first bucket with a hit wins.
_KEYWORD_BUCKETS: list[tuple[SkillCategory, tuple[str, ...]]] = [
    (_C.PATIENT_CARE, ("patient", "clinical", "nursing", "bedside", "medical", "healthcare")),
    (_C.FINANCIAL_ANALYSIS, ("financial", "finance", "trading", "investment", "accounting", "audit")),
    (_C.LEGAL_RESEARCH, ("legal", "law", "paralegal", "court", "statute")),
    (_C.MANUFACTURING_EQUIPMENT, ("manufacturing", "machining", "assembly", "fabrication")),
    (_C.SUPPLY_CHAIN, ("supply", "logistics", "warehouse", "inventory", "shipping")),
    (_C.DIGITAL_MARKETING, ("marketing", "advertising", "campaign", "brand")),
    (_C.SALES_TECHNIQUES, ("sales", "selling", "prospecting", "closing")),
    (_C.CURRICULUM_DEVELOPMENT, ("teaching", "curriculum", "classroom", "student", "tutoring")),
    (_C.GRAPHIC_DESIGN_SOFTWARE, ("graphic", "illustration", "typography")),
    (_C.CONTENT_CREATION, ("writing", "content", "editorial")),
    (_C.DEVOPS_TOOLS, ("deployment", "pipeline", "container", "infrastructure")),
    (_C.DATABASE, ("database", "sql", "nosql")),
    (_C.CLOUD_PLATFORM, ("cloud",)),
    (_C.FRAMEWORK_LIBRARY, ("framework", "library")),
    (_C.PROJECT_MANAGEMENT, ("project", "program management", "stakeholder")),
    (_C.SOFT_SKILLS, ("leadership", "communication", "collaboration", "interpersonal")),
    (_C.CERTIFICATION, ("certified", "certification", "certificate", "license")),
]


def classify_skill_category(name: str) -> SkillCategory:
    """
    Infer a category for a skill name using fixed patterns and keyword buckets.

    Args:
        name (str): The skill name to classify.

    Returns:
        SkillCategory: The inferred category, `SkillCategory.OTHER` if nothing matches.

    Notes:
        1. Try each regex in the pattern table against the trimmed name; the first match wins.
        2. Otherwise look for any bucket keyword inside the lowercased name.
        3. Fall back to `SkillCategory.OTHER`.
        4. This function performs no I/O.

    """
    text = (name or "").strip()
    if not text:
        return SkillCategory.OTHER

    for pattern, category in _CATEGORY_PATTERNS:
        if pattern.match(text):
            return category

    lowered = text.lower()
    for category, keywords in _KEYWORD_BUCKETS:
        if any(keyword in lowered for keyword in keywords):
            _msg = f"Classified '{text}' as {category.value} by keyword"
            log.debug(_msg)
            return category

    return SkillCategory.OTHER
