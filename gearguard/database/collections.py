# Collection Names
COLLECTIONS = {
    'technicians': 'technicians',
    'teams': 'maintenanceTeams',
    'equipment': 'equipment',
    'maintenance_requests': 'maintenanceRequests',
}

# Collection Structure Documentation
COLLECTION_SCHEMAS = {
    'technicians': {
        'fields': ['displayName', 'avatarUrl', 'createdAt', 'updatedAt'],
        'required': ['displayName'],
        'indexes': ['displayName']
    },
    'maintenanceTeams': {
        'fields': ['name', 'technicianIds', 'createdAt', 'updatedAt'],
        'required': ['name', 'technicianIds'],
        'indexes': ['name']
    },
    'equipment': {
        'fields': ['name', 'serialNumber', 'category', 'location', 'ownerType', 'ownerName',
                   'purchaseDate', 'warrantyUntil', 'defaultTeamId', 'defaultTechnicianId',
                   'status', 'createdAt', 'updatedAt'],
        'required': ['name', 'category', 'status'],
        'indexes': ['name', 'status']
    },
    'maintenanceRequests': {
        'fields': ['type', 'subject', 'description', 'equipmentId', 'equipmentCategory', 'teamId',
                   'technicianId', 'scheduledAt', 'durationHours', 'status', 'createdAt', 'updatedAt'],
        'required': ['type', 'subject', 'equipmentId', 'teamId', 'status'],
        # composite: (status, updatedAt desc), (status, equipmentId, updatedAt desc), (type, scheduledAt)
        'indexes': ['status', 'equipmentId', 'type', 'scheduledAt', 'updatedAt']
    },
}
