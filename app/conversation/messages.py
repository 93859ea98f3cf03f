"""User-facing chat texts."""

WELCOME = (
    "👋 Welcome to Resume Matcher Bot!\n\n"
    "I analyze how well your resume matches a job description.\n\n"
    "🚀 To get started, send:\n/resume_and_job_post_match\n\n"
    "❓ Need help? Send /help"
)

HELP = (
    "🤖 Resume Matcher Bot Commands\n\n"
    "/resume_and_job_post_match - Start resume analysis\n"
    "/help - Show this help message\n"
    "/cancel - Cancel current process\n\n"
    'Or just type "match resume" to get started!'
)

ASK_RESUME = (
    "📄 I'll help you analyze how well your resume matches a job description!\n\n"
    "Please send me your resume first. You can:\n"
    "• Upload a PDF or DOCX file\n"
    "• Copy and paste the text directly\n\n"
    "💡 Tip: Text format usually works better!"
)

RESUME_RECEIVED = "✅ Resume received! Now please send me the job posting (text or file)."

ANALYSIS_STARTED = (
    "🔄 Performing comprehensive resume analysis...\n\n"
    "This will analyze:\n"
    "• Headlines & Job Titles\n"
    "• Skills Match\n"
    "• Experience Alignment\n"
    "• Job Conditions\n\n"
    "This may take 60-90 seconds."
)

ANALYSIS_FAILED = (
    "❌ Sorry, the analysis could not be completed. "
    "Your documents were fine; the analysis service did not return a usable result.\n\n"
    "Please try again with /resume_and_job_post_match."
)

BUSY = "⏳ Please wait, I'm still processing your documents..."

CANCELLED = "✅ Process cancelled. You can start a new analysis anytime with /resume_and_job_post_match"

NOT_EXPECTING_DOCUMENT = (
    "❌ I'm not expecting a document right now. Please start with /resume_and_job_post_match"
)

SEND_DOCUMENT = "📎 Please send the document as text or as a PDF / DOCX file."

DOWNLOAD_FAILED = (
    "❌ Sorry, I couldn't download that file. Please try again or paste the text instead."
)

GENERIC_ERROR = "❌ Sorry, something went wrong. Please try again."


def validation_failed(reason: str) -> str:
    return f"❌ {reason}"
