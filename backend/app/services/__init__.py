"""
Schools24 Backend — Services Layer
====================================

Service Inventory:
    - TokenService:       JWT issue/verify (HS256)
    - CacheService:       snappy-compressed JSON over memory or Redis
    - FileService:        upload sink for attendance photos
    - AuthService:        login, registration, profile
    - StudentService:     dashboard, profile, attendance
    - AcademicService:    timetable, homework, grades, subjects
    - TeacherService:     classes, attendance marking, homework, grades, announcements
    - AdminService:       users, profiles, fees, payments, audit logs
    - ClassService:       class listing and creation
"""
