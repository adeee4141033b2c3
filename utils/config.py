import os

from dotenv import load_dotenv

load_dotenv()

# Runtime settings
APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
APP_PORT = int(os.getenv("APP_PORT", "5000"))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "false").lower().strip() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper().strip()
APP_SECRET_KEY = os.getenv("APP_SECRET_KEY", "credgen")
SIGNAL_SEED = int(os.getenv("SIGNAL_SEED")) if os.getenv("SIGNAL_SEED") else None

# Loan constraints (validated at the API boundary, not by the agents)
MIN_LOAN_AMOUNT = 50000
MAX_LOAN_AMOUNT = 5000000
MIN_TENURE = 6   # months
MAX_TENURE = 84  # months
DEFAULT_TENURE_MONTHS = 36
DEFAULT_ANNUAL_RATE = 12.5  # used for the DTI estimate
DEFAULT_MONTHLY_INCOME = 50000

# Confidence weights (sum to 1.0)
CONFIDENCE_WEIGHTS = {
    "intent": 0.30,    # loan purpose clarity
    "identity": 0.25,  # KYC verification
    "credit": 0.25,    # bureau score
    "income": 0.20     # income verification
}

# No dimension reaches 100%
CONFIDENCE_CAPS = {
    "intent": 97,    # borrower intent is never certain
    "identity": 99,  # residual document fraud risk
    "income": 92,    # income fluctuates
    "credit": 96     # bureau models carry uncertainty
}

THRESHOLDS = {
    "rejected": 40,      # < 40 after two completed steps
    "processing": 50,    # 50-69
    "review": 70,        # 70-88
    "approved": 89       # >= 89 auto-approval
}

REJECTION_CREDIT_FLOOR = 550
IDENTITY_FAILURE_FLOOR = 50
IDENTITY_VERIFIED_FLOOR = 90
DTI_REJECTION_CEILING = 60
STAGNATION_MAX_ATTEMPTS = 3
STEP_COMPLETION_INTENT = 75

# Intent scoring bands
INTENT_AMOUNT_BAND = (50000, 2500000)
INTENT_TENURE_BAND = (12, 60)
LOW_RISK_PURPOSES = ["home_improvement", "education", "medical"]
MEDIUM_RISK_PURPOSES = ["wedding", "travel", "debt_consolidation"]
EMPLOYMENT_SCORES = {
    "salaried": 22,
    "self-employed": 16,
    "business": 14
}

INCOME_RANGES = {
    "0-25000": 12500,
    "25000-50000": 37500,
    "50000-100000": 75000,
    "100000+": 150000
}

# Credit bands: (minimum score, category, confidence low, confidence high)
CREDIT_BANDS = [
    (800, "EXCELLENT", 91, 95),
    (750, "VERY_GOOD", 82, 89),
    (700, "GOOD", 70, 77),
    (650, "FAIR", 52, 59),
    (0, "POOR", 28, 37)
]

# DTI bands: (upper bound exclusive, income confidence low, high)
DTI_BANDS = [
    (30, 58, 65),
    (40, 48, 55),
    (50, 38, 45)
]
HIGH_DTI_INCOME_CONFIDENCE = 25

RISK_FACTORS = {
    "fair_credit": "Fair credit score - monitor closely",
    "low_credit": "Low credit score - elevated default risk",
    "high_dti": "High debt-to-income ratio"
}

# Sanction pricing
BASE_INTEREST_RATE = 10.5
DEFAULT_CREDIT_SCORE = 700
PROCESSING_FEE_RATE = 0.02
SANCTION_VALIDITY_DAYS = 30
SANCTION_TERMS = [
    "Loan disbursement subject to document verification",
    "Interest rate may vary based on RBI guidelines",
    "Processing fee is non-refundable",
    "Insurance is optional but recommended"
]

# Mock bureau registry keyed by PAN
MOCK_CUSTOMERS = {
    "ABCDE1234F": {
        "name": "Rahul Sharma",
        "dob": "1990-05-15",
        "credit_score": 780,
        "existing_loans": 1,
        "monthly_income": 85000,
        "employer": "TCS Limited",
        "employment_years": 5
    },
    "XYZAB5678G": {
        "name": "Priya Patel",
        "dob": "1988-11-22",
        "credit_score": 650,
        "existing_loans": 3,
        "monthly_income": 45000,
        "employer": "Freelance",
        "employment_years": 2
    },
    "LMNOP9012H": {
        "name": "Amit Kumar",
        "dob": "1995-03-10",
        "credit_score": 820,
        "existing_loans": 0,
        "monthly_income": 120000,
        "employer": "Infosys",
        "employment_years": 8
    }
}

SYNTHETIC_NAMES = ["Arun Verma", "Sneha Reddy", "Vikram Singh", "Ananya Iyer", "Rajesh Gupta"]
SYNTHETIC_EMPLOYERS = ["Wipro", "HCL Technologies", "Tech Mahindra", "Accenture", "Cognizant"]
SYNTHETIC_DOB = "1992-07-20"

# City and state are paired by index
ADDRESS_CITIES = ["Mumbai", "Delhi", "Bangalore", "Hyderabad", "Chennai", "Pune", "Kolkata"]
ADDRESS_STATES = ["Maharashtra", "Delhi", "Karnataka", "Telangana", "Tamil Nadu", "Maharashtra", "West Bengal"]
ADDRESS_STREETS = ["MG Road", "Park Street", "Residency Road", "Main Road"]

EMPLOYERS_BY_SALARY = {
    "large": ["Tata Consultancy Services", "Infosys Limited", "Wipro Limited"],
    "medium": ["Mindtree Ltd", "Tech Mahindra", "L&T Infotech"],
    "small": ["Nexus Solutions Pvt Ltd", "Vertex Technologies", "Quantum Infotech"]
}

# Agent names as they appear in the activity log
SYSTEM_NAME = "System"
MASTER_AGENT_NAME = "Master Agent"
