"""Third-party HTTP integrations: Resend email, Zalo OA, Abitstore, OneSignal push."""
