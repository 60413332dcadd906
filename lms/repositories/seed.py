"""
Demo data for the in-memory database.
Three live tenants (the agency owner plus two academies) and one suspended
tenant, with users for every role and a small content catalog.
"""
import logging
from datetime import timedelta

from lms.core.security import PasswordHasher
from lms.models.schemas import (
    Achievement,
    AchievementCriteria,
    Branding,
    Chapter,
    Comment,
    Domain,
    Enrollment,
    Lesson,
    MediaAsset,
    NavLink,
    Notification,
    Product,
    ProductPrice,
    Program,
    Tenant,
    TenantMembership,
    TenantStripeSettings,
    User,
    UserAchievement,
    Video,
    VideoProgress,
    utcnow,
)
from lms.repositories.memory import InMemoryDatabase

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

AGENCY_TENANT_ID = "tenant-agency"
ACME_TENANT_ID = "tenant-acme"
RIVERSIDE_TENANT_ID = "tenant-riverside"
DORMANT_TENANT_ID = "tenant-dormant"


async def load_demo_data(db: InMemoryDatabase, hasher: PasswordHasher) -> None:
    """Populate every collection with demo documents."""
    now = utcnow()
    day = timedelta(days=1)
    hour = timedelta(hours=1)

    # -------------------------------------------------------------------------
    # Tenants & domains
    # -------------------------------------------------------------------------
    tenants = [
        Tenant(
            id=AGENCY_TENANT_ID,
            name="Agency Owner",
            slug="agency-owner",
            is_agency_owner=True,
            allow_public_read=True,
        ),
        Tenant(
            id=ACME_TENANT_ID,
            name="Acme Riding Academy",
            slug="acme",
            stripe=TenantStripeSettings(
                enabled=True,
                secret_key="sk_test_acme",
                publishable_key="pk_test_acme",
                webhook_secret="whsec_acme",
            ),
        ),
        Tenant(id=RIVERSIDE_TENANT_ID, name="Riverside Equestrian", slug="riverside"),
        Tenant(id=DORMANT_TENANT_ID, name="Dormant Stables", slug="dormant", status="suspended"),
    ]
    for tenant in tenants:
        await db.tenants.create(tenant)

    domains = [
        Domain(tenant_id=AGENCY_TENANT_ID, domain="lms.example.com", is_default=True),
        Domain(tenant_id=ACME_TENANT_ID, domain="acme.lms.example.com"),
        Domain(tenant_id=ACME_TENANT_ID, domain="learn.acme-riding.com"),
        Domain(tenant_id=RIVERSIDE_TENANT_ID, domain="riverside.lms.example.com"),
        Domain(tenant_id=RIVERSIDE_TENANT_ID, domain="old.riverside.com", is_active=False),
        Domain(tenant_id=DORMANT_TENANT_ID, domain="dormant.lms.example.com"),
    ]
    for domain in domains:
        await db.domains.create(domain)

    await db.branding.create(Branding(
        tenant_id=AGENCY_TENANT_ID,
        name="LMS Platform",
        logo=MediaAsset(url="/media/agency-logo.svg", filename="agency-logo.svg",
                        mime_type="image/svg+xml", width=193, height=34),
        primary_color="#0C0C0C",
        accent_color="#2D81FF",
        updated_at=now - 10 * day,
    ))
    await db.branding.create(Branding(
        tenant_id=ACME_TENANT_ID,
        name="Acme Riding Academy",
        logo=MediaAsset(url="/media/acme-logo.png", filename="acme-logo.png",
                        mime_type="image/png", width=240, height=60),
        title_suffix="- Acme Riding Academy",
        meta_description="Online horsemanship training from Acme",
        og_title="Acme Riding Academy",
        primary_color="#1B4332",
        accent_color="#D4A373",
        header_links=[NavLink(label="Programs", url="/dashboard/programs")],
        copyright_text="Acme Riding Academy",
        updated_at=now - 2 * day,
    ))

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------
    password_hash = hasher.hash(DEMO_PASSWORD)
    users = [
        User(id="user-superadmin", email="superadmin@lms.example.com", name="Platform Owner",
             roles=["super-admin"], password_hash=password_hash),
        User(id="user-acme-admin", email="admin@acme-riding.com", name="Acme Admin",
             roles=["admin"], password_hash=password_hash,
             tenants=[TenantMembership(tenant_id=ACME_TENANT_ID, roles=["tenant-admin"])]),
        User(id="user-acme-coach", email="coach@acme-riding.com", name="Jordan Coach",
             roles=["business"], password_hash=password_hash,
             tenants=[TenantMembership(tenant_id=ACME_TENANT_ID)]),
        User(id="user-acme-student", email="student@acme-riding.com",
             roles=["regular"], tier="basic", password_hash=password_hash,
             tenants=[TenantMembership(tenant_id=ACME_TENANT_ID)]),
        User(id="user-acme-pro", email="pro@acme-riding.com", name="Pat Pro",
             roles=["regular"], tier="pro", password_hash=password_hash,
             stripe_customer_id="cus_acme_pro",
             tenants=[TenantMembership(tenant_id=ACME_TENANT_ID)]),
        User(id="user-riverside-rider", email="rider@riverside.com", name="Riley Rider",
             roles=["regular"], tier="premium", password_hash=password_hash,
             tenants=[TenantMembership(tenant_id=RIVERSIDE_TENANT_ID)]),
    ]
    for user in users:
        await db.users.create(user)

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------
    videos = [
        Video(
            id="video-acme-1", tenant_id=ACME_TENANT_ID,
            title="Groundwork Fundamentals", slug="groundwork-fundamentals",
            description="Building trust and respect on the ground.",
            video_url="https://cdn.example.com/acme/groundwork.m3u8",
            duration=754, category="Groundwork", tags=["groundwork", "basics"],
            chapters=[Chapter(title="Intro", start_time=0), Chapter(title="Lunging", start_time=180)],
            instructor_id="user-acme-coach", status="published", featured=True,
            created_at=now - 30 * day,
        ),
        Video(
            id="video-acme-2", tenant_id=ACME_TENANT_ID,
            title="Collected Canter", slug="collected-canter",
            description="Engaging the hindquarters for collection.",
            duration=1320, category="Dressage", tags=["dressage", "canter"],
            instructor_id="user-acme-coach", difficulty="advanced",
            status="published", access_level="premium",
            created_at=now - 10 * day,
        ),
        Video(
            id="video-acme-3", tenant_id=ACME_TENANT_ID,
            title="Trailer Loading Without Stress", slug="trailer-loading",
            duration=3725, category="Groundwork", tags=["trailer", "groundwork"],
            instructor_id="user-acme-coach", difficulty="intermediate",
            status="published", access_level="basic",
            created_at=now - 3 * day,
        ),
        Video(
            id="video-acme-draft", tenant_id=ACME_TENANT_ID,
            title="Upcoming: Liberty Work", slug="liberty-work",
            instructor_id="user-acme-coach", status="draft",
            created_at=now - 1 * day,
        ),
        Video(
            id="video-riverside-1", tenant_id=RIVERSIDE_TENANT_ID,
            title="Jumping Grids", slug="jumping-grids",
            duration=900, category="Jumping", tags=["jumping"],
            status="published", featured=True,
            created_at=now - 5 * day,
        ),
    ]
    for video in videos:
        await db.videos.create(video)

    programs = [
        Program(
            id="program-acme-foundations", tenant_id=ACME_TENANT_ID,
            title="Foundations of Horsemanship", slug="foundations",
            short_description="Start here: six weeks of groundwork.",
            instructor_id="user-acme-coach", category="Groundwork",
            lessons=[
                Lesson(title="Trailer loading", video_id="video-acme-3", order=2, duration=62),
                Lesson(title="Groundwork basics", video_id="video-acme-1", order=1,
                       duration=13, is_preview=True),
            ],
            duration=6.0, price=0, status="published", featured=True,
            tags=["groundwork"], created_at=now - 20 * day,
        ),
        Program(
            id="program-acme-dressage", tenant_id=ACME_TENANT_ID,
            title="Dressage Intensive", slug="dressage-intensive",
            short_description="Collection, lateral work and test riding.",
            instructor_id="user-acme-coach", category="Dressage",
            lessons=[Lesson(title="Collected canter", video_id="video-acme-2", order=1, duration=22,
                            type="Live Session", scheduled_at=now + 2 * day)],
            difficulty="advanced", duration=12.0, price=199.0,
            access_level="premium", status="published", enrollment_limit=2,
            tags=["dressage"], created_at=now - 8 * day,
        ),
        Program(
            id="program-riverside-jumping", tenant_id=RIVERSIDE_TENANT_ID,
            title="Show Jumping Basics", slug="show-jumping-basics",
            instructor_id="user-riverside-rider", status="published",
            lessons=[Lesson(title="Grids", video_id="video-riverside-1", order=1)],
            created_at=now - 4 * day,
        ),
    ]
    for program in programs:
        await db.programs.create(program)

    # -------------------------------------------------------------------------
    # Engagement
    # -------------------------------------------------------------------------
    comments = [
        Comment(tenant_id=ACME_TENANT_ID, video_id="video-acme-1", user_id="user-acme-pro",
                content="This changed how my mare leads!", created_at=now - 2 * hour),
        Comment(tenant_id=ACME_TENANT_ID, video_id="video-acme-1", user_id="user-acme-student",
                content="Great breakdown of the lunging chapter.", created_at=now - 3 * day),
        Comment(tenant_id=ACME_TENANT_ID, video_id="video-acme-1", user_id="user-acme-student",
                content="Spam link here", status="rejected", created_at=now - 1 * day),
    ]
    for comment in comments:
        await db.comments.create(comment)

    progress = [
        VideoProgress(tenant_id=ACME_TENANT_ID, user_id="user-acme-pro", video_id="video-acme-1",
                      progress=100, current_time=754, duration=754, completed=True,
                      watch_time=800, last_watched_at=now - 1 * hour,
                      created_at=now - 2 * day, updated_at=now - 1 * hour),
        VideoProgress(tenant_id=ACME_TENANT_ID, user_id="user-acme-pro", video_id="video-acme-3",
                      progress=40, current_time=1490, duration=3725,
                      watch_time=1500, last_watched_at=now - 1 * day,
                      created_at=now - 1 * day, updated_at=now - 1 * day),
        VideoProgress(tenant_id=ACME_TENANT_ID, user_id="user-acme-student", video_id="video-acme-1",
                      progress=50, current_time=377, duration=754,
                      watch_time=380, last_watched_at=now - 5 * day,
                      created_at=now - 5 * day, updated_at=now - 5 * day),
    ]
    for record in progress:
        await db.video_progress.create(record)

    await db.enrollments.create(Enrollment(
        tenant_id=ACME_TENANT_ID, user_id="user-acme-pro",
        program_id="program-acme-foundations", status="completed", progress=100,
        completed_lessons=[1, 2], completed_at=now - 1 * day,
    ))
    await db.enrollments.create(Enrollment(
        tenant_id=ACME_TENANT_ID, user_id="user-acme-pro",
        program_id="program-acme-dressage", progress=25,
    ))

    notifications = [
        Notification(tenant_id=ACME_TENANT_ID, user_id="user-acme-pro", type="achievement",
                     title="Program completed", message="You finished Foundations of Horsemanship.",
                     created_at=now - 1 * day),
        Notification(tenant_id=ACME_TENANT_ID, user_id="user-acme-pro", type="comment",
                     title="New reply", message="Jordan replied to your comment.",
                     action_url="/dashboard/videos/video-acme-1", created_at=now - 2 * hour),
        Notification(tenant_id=ACME_TENANT_ID, user_id="user-acme-pro", type="system",
                     title="Welcome", message="Welcome to Acme Riding Academy!", read=True,
                     created_at=now - 30 * day),
        Notification(tenant_id=RIVERSIDE_TENANT_ID, user_id="user-riverside-rider",
                     title="Welcome", message="Welcome to Riverside!"),
    ]
    for notification in notifications:
        await db.notifications.create(notification)

    # -------------------------------------------------------------------------
    # Achievements
    # -------------------------------------------------------------------------
    achievements = [
        Achievement(id="ach-acme-welcome", tenant_id=ACME_TENANT_ID, type="first_login",
                    title="Welcome aboard", description="Log in and explore the academy",
                    points=25),
        Achievement(id="ach-acme-first-steps", tenant_id=ACME_TENANT_ID, type="video_completion",
                    title="First Steps", description="Watch your first training video",
                    points=10, criteria=AchievementCriteria(videos_to_complete=1)),
        Achievement(id="ach-acme-getting-started", tenant_id=ACME_TENANT_ID,
                    type="video_completion", title="Getting Started",
                    description="Complete 5 training videos", points=50,
                    criteria=AchievementCriteria(videos_to_complete=5)),
        Achievement(id="ach-acme-graduate", tenant_id=ACME_TENANT_ID, type="program_completion",
                    title="Program Graduate", description="Complete your first training program",
                    points=200, rarity="uncommon",
                    criteria=AchievementCriteria(programs_to_complete=1)),
        Achievement(id="ach-acme-consistent", tenant_id=ACME_TENANT_ID, type="streak",
                    title="Consistent Rider", description="Train 7 days in a row",
                    points=150, rarity="uncommon", criteria=AchievementCriteria(streak_days=7)),
        Achievement(id="ach-acme-time", tenant_id=ACME_TENANT_ID, type="time_spent",
                    title="Time Investment", description="Spend 10 hours learning",
                    points=300, rarity="uncommon", criteria=AchievementCriteria(time_spent_hours=10)),
        Achievement(id="ach-acme-community", tenant_id=ACME_TENANT_ID, type="comment",
                    title="Community Member", description="Leave your first comment on a video",
                    points=25),
        Achievement(id="ach-acme-champion", tenant_id=ACME_TENANT_ID, type="special",
                    title="Academy Champion", description="Complete every training program",
                    points=1000, rarity="legendary"),
        Achievement(id="ach-acme-beta", tenant_id=ACME_TENANT_ID, type="special",
                    title="Beta Rider", description="Joined during the beta",
                    points=5, status="inactive"),
        Achievement(id="ach-riverside-first-steps", tenant_id=RIVERSIDE_TENANT_ID,
                    type="video_completion", title="First Jump",
                    description="Watch your first jumping video", points=10,
                    criteria=AchievementCriteria(videos_to_complete=1)),
    ]
    for achievement in achievements:
        await db.achievements.create(achievement)

    await db.user_achievements.create(UserAchievement(
        tenant_id=ACME_TENANT_ID, user_id="user-acme-pro",
        achievement_id="ach-acme-first-steps", earned_at=now - 2 * day,
    ))
    await db.user_achievements.create(UserAchievement(
        tenant_id=ACME_TENANT_ID, user_id="user-acme-pro",
        achievement_id="ach-acme-graduate", earned_at=now - 1 * day,
    ))

    # -------------------------------------------------------------------------
    # Billing
    # -------------------------------------------------------------------------
    await db.products.create(Product(
        id="product-acme-premium", tenant_id=ACME_TENANT_ID,
        name="Premium Membership", type="subscription", access_level="premium",
        prices=[
            ProductPrice(amount=2900, interval="month", stripe_price_id="price_acme_premium_monthly",
                         label="Monthly"),
            ProductPrice(amount=29000, interval="year", stripe_price_id="price_acme_premium_yearly",
                         label="Yearly"),
        ],
        features=["All premium videos", "Program access"], featured=True,
    ))
    await db.products.create(Product(
        id="product-acme-legacy", tenant_id=ACME_TENANT_ID,
        name="Legacy Bundle", type="program_bundle", active=False,
        prices=[ProductPrice(amount=9900, stripe_price_id="price_acme_legacy")],
    ))

    logger.info(
        f"Seeded demo data: {len(tenants)} tenants, {len(users)} users, "
        f"{len(videos)} videos, {len(programs)} programs"
    )
