"""User-facing messages, kept in one place for consistency and i18n."""

from __future__ import annotations

AUTH_ERRORS = {
    "INVALID_CREDENTIALS": "Invalid credentials",
    "ACCOUNT_DEACTIVATED": "Account is deactivated",
    "USER_NOT_FOUND": "User not found",
    "INVALID_API_KEY": "Invalid or missing API key",
}

VALIDATION_ERRORS = {
    "PASSWORD_MIN_LENGTH": "Le mot de passe doit contenir au moins 8 caractères",
    "PASSWORD_MAX_LENGTH": "Le mot de passe ne doit pas dépasser 72 octets",
    "PASSWORD_PATTERN": (
        "Le mot de passe doit contenir au moins une majuscule, une minuscule et un chiffre"
    ),
    "EMAIL_ALREADY_EXISTS": "Cet email est déjà utilisé",
    "EMAIL_INVALID": "Email invalide",
    "ROLE_INVALID": 'Le rôle doit être "client" ou "artist"',
    "PHONE_INVALID": "Numéro de téléphone invalide",
}

SUCCESS_MESSAGES = {
    "REGISTRATION_SUCCESS": "Compte créé avec succès ! Bienvenue sur Blottr.",
    "LOGIN_SUCCESS": "Connexion réussie",
    "INQUIRY_CREATED": (
        "Votre demande a été envoyée avec succès ! "
        "L'artiste vous contactera dans les plus brefs délais."
    ),
    "QUICK_INQUIRY_CREATED": "Votre message a été envoyé avec succès !",
    "INQUIRY_UPDATED": "Demande mise à jour",
}

INQUIRY_ERRORS = {
    "NOT_FOUND": 'Contact inquiry with ID "{inquiry_id}" not found',
}

RATE_LIMIT_ERRORS = {
    "TOO_MANY_REQUESTS": "Trop de requêtes. Veuillez réessayer plus tard.",
}
