"""
Schools24 Backend — API Routes
================================

Route Inventory (all under /api/v1 unless noted):
    - health.py:         GET /health, GET /ready           (root, public)
    - auth.py:           /auth/login, /auth/register       (public)
                         /auth/me, /auth/logout            (bearer)
    - student.py:        /student/*                        (bearer)
    - academic.py:       /academic/*                       (bearer; POST subjects admin)
    - teacher.py:        /teacher/*                        (teacher, admin)
    - announcements.py:  GET /announcements                (bearer)
    - classes.py:        /classes                          (bearer; POST admin)
    - admin.py:          /admin/*                          (admin)

Routes stay thin: read the request, call a service, return a schema.
"""
