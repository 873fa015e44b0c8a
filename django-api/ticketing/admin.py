from django.contrib import admin

from ticketing.models import Booking, Event, Ticket, TicketType


class TicketTypeInline(admin.TabularInline):
    model = TicketType
    extra = 1
    readonly_fields = ["remaining"]


class TicketInline(admin.TabularInline):
    model = Ticket
    extra = 0
    readonly_fields = ["ticket_number", "ticket_type", "used_at"]
    can_delete = False


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["name", "location", "start_date", "is_published", "creator"]
    list_filter = ["is_published"]
    search_fields = ["name", "location"]
    inlines = [TicketTypeInline]


@admin.register(TicketType)
class TicketTypeAdmin(admin.ModelAdmin):
    list_display = ["name", "event", "price", "quantity", "remaining"]
    list_filter = ["event"]
    readonly_fields = ["remaining"]


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ["id", "event", "user", "status", "total_amount", "created_at"]
    list_filter = ["status", "event"]
    search_fields = ["email", "payment_reference"]
    readonly_fields = ["status", "payment_reference", "total_amount"]
    inlines = [TicketInline]
