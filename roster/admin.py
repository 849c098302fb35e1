from django.contrib import admin
from .models import Classroom, Student


class StudentInline(admin.TabularInline):
    model = Student
    fields = ("student_id", "first_name", "last_name", "active")
    extra = 0


@admin.register(Classroom)
class ClassroomAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "organization", "homeroom_teacher", "archived")
    list_filter = ("organization", "archived")
    search_fields = ("name", "code")
    filter_horizontal = ("specialist_teachers",)
    inlines = [StudentInline]


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ("student_id", "first_name", "last_name", "classroom", "organization", "active")
    list_filter = ("organization", "active")
    search_fields = ("student_id", "first_name", "last_name")
