"""
portfolio/seed.py -- Demo data for a fresh database.

Creates one admin and one regular account, three blogs and three projects
owned by the admin, and one resume owned by the regular user. Content goes
through the lifecycle services, so slugs, read times and publish stamps are
computed exactly as the API would compute them.

Idempotent on the account emails: when the demo admin already exists nothing
is written.
"""

import logging

from auth.models import User
from auth.store import UserStore
from auth.tokens import hash_password
from core.models import ROLE_ADMIN, ROLE_USER
from portfolio.lifecycle import BlogService, ProjectService, ResumeService

logger = logging.getLogger("portfolio.seed")

ADMIN_EMAIL = "admin@portfolio.com"
ADMIN_PASSWORD = "admin123"
USER_EMAIL = "user@portfolio.com"
USER_PASSWORD = "user123"

_BLOGS = [
    {
        "title": "Getting Started with Next.js and TypeScript",
        "content": (
            "# Getting Started with Next.js and TypeScript\n\n"
            "Next.js is a React framework that pairs well with TypeScript. "
            "Server-side rendering, static generation and API routes come built in, "
            "and `create-next-app --typescript` configures the compiler for you.\n\n"
            "## Best Practices\n\n"
            "1. Enable strict mode\n2. Define interfaces for your data\n3. Handle errors gracefully\n"
        ),
        "excerpt": "Learn how to get started with Next.js and TypeScript for building type-safe web applications.",
        "cover_image": "https://images.unsplash.com/photo-1633356122544-f134324a6cee?w=800&q=80",
        "published": True,
        "featured": True,
        "tags": ["Next.js", "TypeScript", "React", "Web Development", "Tutorial"],
        "seo_title": "Getting Started with Next.js and TypeScript",
    },
    {
        "title": "Building RESTful APIs with Node.js and Express",
        "content": (
            "# Building RESTful APIs with Node.js and Express\n\n"
            "REST relies on stateless communication and the standard HTTP methods: "
            "GET to read, POST to create, PATCH to update and DELETE to remove.\n\n"
            "## Security Considerations\n\n"
            "Use HTTPS, rate limit every endpoint, validate all input and keep dependencies updated.\n"
        ),
        "excerpt": "The fundamentals of building RESTful APIs with Node.js and Express, with security best practices.",
        "cover_image": "https://images.unsplash.com/photo-1558494949-ef010cbdcc31?w=800&q=80",
        "published": True,
        "featured": False,
        "tags": ["Node.js", "Express", "API", "Backend", "REST", "Tutorial"],
    },
    {
        "title": "Understanding React Hooks: A Deep Dive",
        "content": (
            "# Understanding React Hooks\n\n"
            "useState manages component state, useEffect runs side effects and useContext "
            "reads context without prop drilling. Custom hooks package reusable logic.\n"
        ),
        "excerpt": "A deep dive into useState, useEffect, useContext and custom hooks.",
        "published": False,
        "featured": False,
        "tags": ["React", "JavaScript", "Hooks", "Frontend"],
    },
]

_PROJECTS = [
    {
        "title": "E-commerce Platform",
        "description": "A full-stack e-commerce platform with authentication, product management, cart and payments.",
        "thumbnail": "https://images.unsplash.com/photo-1556742049-0cfed4f6a45d?w=800&q=80",
        "technologies": ["Next.js", "Node.js", "PostgreSQL", "Stripe", "TypeScript"],
        "features": ["User Authentication", "Shopping Cart & Checkout", "Admin Dashboard", "Sales Analytics"],
        "live_url": "https://ecommerce-demo.vercel.app",
        "github_url": "https://github.com/username/ecommerce-platform",
        "status": "COMPLETED",
        "featured": True,
        "order": 1,
    },
    {
        "title": "Task Management App",
        "description": "A collaborative task manager with real-time updates, team features and Kanban boards.",
        "technologies": ["React", "Node.js", "MongoDB", "Socket.io"],
        "features": ["Real-time Collaboration", "Team Management", "Kanban Boards", "Time Tracking"],
        "github_url": "https://github.com/username/task-manager",
        "status": "COMPLETED",
        "featured": True,
        "order": 2,
    },
    {
        "title": "Weather Forecast Dashboard",
        "description": "Real-time weather and forecasts with interactive charts and maps.",
        "technologies": ["React", "TypeScript", "Chart.js", "Leaflet"],
        "features": ["7-day Forecast", "Weather Maps", "Location Search"],
        "status": "IN_PROGRESS",
        "featured": False,
        "order": 3,
    },
]

_RESUME = {
    "title": "Software Developer Resume",
    "personal_info": {
        "fullName": "John Doe",
        "email": "john.doe@email.com",
        "phone": "+1 (555) 123-4567",
        "location": "San Francisco, CA",
        "website": "https://johndoe.dev",
        "linkedin": "https://linkedin.com/in/johndoe",
        "github": "https://github.com/johndoe",
        "summary": "Full-stack developer building modern web applications with React, Node.js and cloud services.",
    },
    "experience": [
        {
            "position": "Senior Full Stack Developer",
            "company": "Tech Innovations Inc.",
            "location": "San Francisco, CA",
            "startDate": "Jan 2022",
            "current": True,
            "description": "Lead development of scalable web applications.",
            "achievements": [
                "Reduced page load times by 40%",
                "Implemented CI/CD pipelines that cut deployment time by 60%",
            ],
        },
    ],
    "education": [
        {
            "degree": "Bachelor of Science",
            "field": "Computer Science",
            "institution": "University of California, Berkeley",
            "startDate": "2016",
            "endDate": "2020",
            "current": False,
            "gpa": "3.8",
            "achievements": ["Graduated Magna Cum Laude"],
        },
    ],
    "skills": [
        {"name": "JavaScript", "level": "Expert", "category": "Programming Languages"},
        {"name": "Python", "level": "Intermediate", "category": "Programming Languages"},
        {"name": "React", "level": "Expert", "category": "Frontend"},
        {"name": "Node.js", "level": "Expert", "category": "Backend"},
        {"name": "PostgreSQL", "level": "Advanced", "category": "Database"},
    ],
    "projects": [
        {
            "name": "E-commerce Platform",
            "description": "Full-stack e-commerce solution with payment integration",
            "technologies": ["Next.js", "Node.js", "PostgreSQL", "Stripe"],
            "url": "https://ecommerce-demo.vercel.app",
            "highlights": ["Handles 1000+ concurrent users"],
        },
    ],
    "template": "modern",
}


def seed_demo(
    user_store: UserStore,
    blogs: BlogService,
    projects: ProjectService,
    resumes: ResumeService,
) -> bool:
    """Write the demo accounts and content. Returns False when already seeded."""
    if user_store.get_by_email(ADMIN_EMAIL) is not None:
        logger.info("Demo admin %s already exists -- skipping seed", ADMIN_EMAIL)
        return False

    admin_id = user_store.create_user(
        User(
            name="Admin User",
            email=ADMIN_EMAIL,
            hashed_password=hash_password(ADMIN_PASSWORD),
            role=ROLE_ADMIN,
            email_verified=True,
            avatar="https://ui-avatars.com/api/?name=Admin+User&background=4F46E5&color=fff",
        )
    )
    user = user_store.get_by_email(USER_EMAIL)
    if user is None:
        user_id = user_store.create_user(
            User(
                name="John Doe",
                email=USER_EMAIL,
                hashed_password=hash_password(USER_PASSWORD),
                role=ROLE_USER,
                email_verified=True,
            )
        )
    else:
        user_id = user.id

    for blog in _BLOGS:
        blogs.create(admin_id, **blog)
    for project in _PROJECTS:
        projects.create(admin_id, **project)
    resumes.create(user_id, **_RESUME)

    logger.info("Seeded 2 users, %d blogs, %d projects and 1 resume", len(_BLOGS), len(_PROJECTS))
    return True
