from dotenv import find_dotenv, load_dotenv

# Load .env as early as possible so NETSERVICE_* flags reach the plugins under test.
load_dotenv(find_dotenv(usecwd=True))
