"""
mailcapture E2E Tests Package.

This package contains end-to-end tests that run against a live MailHog.

Running Tests:
    # Start MailHog
    docker run -d -p 1025:1025 -p 8025:8025 mailhog/mailhog

    # Run all E2E tests
    E2E_MAILHOG_URL=http://localhost:8025 pytest tests/e2e/

Environment Variables:
    E2E_MAILHOG_URL: MailHog HTTP API URL; tests are skipped when unset
    MAILHOG_SMTP_PORT: MailHog SMTP port (default: 1025)
    E2E_TIMEOUT: Seconds to wait for mail (default: 10)
"""
